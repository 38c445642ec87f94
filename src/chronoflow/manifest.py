"""
Hook-generation manifest.

Declares each ChronoFlow contract's name, ABI and address for the external
wagmi CLI, which turns them into typed React hooks. This module only builds
and writes the declaration; the generator does the rest.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ChronoFlowConfig, build_default_config
from .contracts import INTERFACES, ContractName

logger = logging.getLogger(__name__)

DEFAULT_OUT = "generated/wagmi.ts"
DEFAULT_PLUGINS = ["react"]


def build_manifest(
    config: Optional[ChronoFlowConfig] = None,
    network: Optional[str] = None,
    out: str = DEFAULT_OUT,
    plugins: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Build the generator manifest for a network.

    Contracts without a known address on the network are emitted with
    ``address: None`` so the generator produces address-less hooks.
    """
    config = config or build_default_config(network)
    network = network or config.network
    chain_id = config.get_network(network).chain_id

    contracts = []
    for name in ContractName:
        contracts.append({
            "name": name.value,
            "abi": INTERFACES[name].as_list(),
            "address": config.get_address(name, network),
        })

    return {
        "out": out,
        "plugins": list(plugins) if plugins is not None else list(DEFAULT_PLUGINS),
        "network": network,
        "chainId": chain_id,
        "contracts": contracts,
    }


def write_manifest(path: Path | str, manifest: Dict[str, Any]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(manifest, f, indent=2)
    logger.info(f"Wrote hook manifest for {len(manifest['contracts'])} contracts to {path}")
    return path
