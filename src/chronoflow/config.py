"""
Configuration management for chronoflow.

Provides explicit configuration for:
- Networks (RPC endpoint, chain ID, explorer)
- Contract addresses per network, with operator overrides
- Compiled artifact and deployment record locations
- Logging configuration

Configuration objects are passed to the client factory and the deployment
executor at call time. The only built-in default is the fallback network
(``somnia_testnet``). Environment variables use the prefix ``CHRONOFLOW_``.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .contracts import DEFAULT_ADDRESSES, ContractName
from .exceptions import UnknownNetworkError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CHRONOFLOW_"
DEFAULT_NETWORK = "somnia_testnet"

# Env var suffix per contract, e.g. CHRONOFLOW_CORE_ADDRESS
_ADDRESS_ENV_KEYS: Dict[ContractName, str] = {
    ContractName.STREAM_NFT: "STREAM_NFT_ADDRESS",
    ContractName.CHRONOFLOW_CORE: "CORE_ADDRESS",
    ContractName.MARKETPLACE: "MARKETPLACE_ADDRESS",
}


@dataclass
class NetworkConfig:
    """Configuration for a blockchain network."""
    chain_id: int
    name: str
    display_name: str
    rpc_url: str
    explorer_url: str = ""
    native_token: str = "ETH"
    block_time_seconds: float = 2.0
    is_testnet: bool = False

    def explorer_tx_url(self, tx_hash: str) -> str:
        """Block explorer URL for a transaction."""
        if not self.explorer_url:
            return ""
        return f"{self.explorer_url}/tx/{tx_hash}"


@dataclass
class LoggingConfig:
    """Configuration for chain operation logging."""
    operation_level: str = "INFO"
    transaction_level: str = "INFO"
    confirmation_level: str = "INFO"
    error_level: str = "ERROR"

    # Partial masking of addresses in transaction logs
    mask_addresses: bool = False


@dataclass
class ChronoFlowConfig:
    """
    Master configuration for chronoflow.

    ``addresses`` holds operator-supplied contract addresses keyed by network
    and contract; they win over the built-in defaults in
    ``contracts.DEFAULT_ADDRESSES``.
    """
    networks: Dict[str, NetworkConfig] = field(default_factory=dict)
    network: str = DEFAULT_NETWORK
    addresses: Dict[str, Dict[ContractName, str]] = field(default_factory=dict)

    artifacts_dir: Path = Path("artifacts")
    deployments_dir: Optional[Path] = Path("deployments")
    module_id: str = "ChronoFlowModule"

    http_timeout_seconds: float = 30.0
    receipt_timeout_seconds: float = 120.0

    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get_network(self, name: Optional[str] = None) -> NetworkConfig:
        """Get configuration for a network (defaults to the selected one)."""
        name = name or self.network
        if name not in self.networks:
            raise UnknownNetworkError(name)
        return self.networks[name]

    @property
    def rpc_url(self) -> str:
        return self.get_network().rpc_url

    def network_for_chain_id(self, chain_id: int) -> Optional[str]:
        for name, network in self.networks.items():
            if network.chain_id == chain_id:
                return name
        return None

    def get_address(
        self,
        contract: ContractName | str,
        network: Optional[str] = None,
    ) -> Optional[str]:
        """Resolve a contract address: operator override first, then defaults."""
        contract = ContractName(contract)
        network = network or self.network
        override = self.addresses.get(network, {}).get(contract)
        if override:
            return override
        return DEFAULT_ADDRESSES.get(network, {}).get(contract)

    def set_address(
        self,
        contract: ContractName | str,
        address: str,
        network: Optional[str] = None,
    ) -> None:
        network = network or self.network
        self.addresses.setdefault(network, {})[ContractName(contract)] = address

    def deployed_addresses_path(self, chain_id: int) -> Optional[Path]:
        if self.deployments_dir is None:
            return None
        return Path(self.deployments_dir) / f"chain-{chain_id}" / "deployed_addresses.json"

    def load_deployed_addresses(self, path: Path | str, network: Optional[str] = None) -> int:
        """
        Load addresses from a deployed_addresses.json record.

        Keys are future ids such as ``ChronoFlowModule#StreamNFT``; call
        futures and unknown contracts are ignored.

        Returns:
            Number of addresses loaded
        """
        with open(path) as f:
            records = json.load(f)

        loaded = 0
        for future_id, address in records.items():
            contract_part = future_id.split("#", 1)[-1]
            try:
                contract = ContractName(contract_part)
            except ValueError:
                continue
            self.set_address(contract, address, network)
            loaded += 1

        logger.info(f"Loaded {loaded} contract addresses from {path}")
        return loaded


def _get_env(key: str, default: Any = None, prefix: str = ENV_PREFIX) -> Any:
    """Get environment variable with prefix."""
    return os.getenv(f"{prefix}{key}", default)


def _build_network_config(
    chain_id: int,
    name: str,
    display_name: str,
    default_rpc: str,
    explorer_url: str,
    native_token: str,
    block_time: float,
    is_testnet: bool = False,
) -> NetworkConfig:
    """Build a NetworkConfig with environment variable overrides."""
    custom_rpc = _get_env(f"{name.upper()}_RPC_URL")

    return NetworkConfig(
        chain_id=chain_id,
        name=name,
        display_name=display_name,
        rpc_url=custom_rpc or default_rpc,
        explorer_url=explorer_url,
        native_token=native_token,
        block_time_seconds=block_time,
        is_testnet=is_testnet,
    )


def build_default_networks() -> Dict[str, NetworkConfig]:
    networks: Dict[str, NetworkConfig] = {}

    # Somnia Testnet (Dream), where the published contracts live
    networks["somnia_testnet"] = _build_network_config(
        chain_id=50312,
        name="somnia_testnet",
        display_name="Somnia Testnet",
        default_rpc="https://dream-rpc.somnia.network",
        explorer_url="https://shannon-explorer.somnia.network",
        native_token="STT",
        block_time=0.1,
        is_testnet=True,
    )

    # Local Hardhat node
    networks["hardhat"] = _build_network_config(
        chain_id=31337,
        name="hardhat",
        display_name="Hardhat",
        default_rpc="http://127.0.0.1:8545",
        explorer_url="",
        native_token="ETH",
        block_time=1.0,
        is_testnet=True,
    )

    return networks


def build_default_config(network: Optional[str] = None) -> ChronoFlowConfig:
    """Build configuration from defaults and CHRONOFLOW_* environment variables."""
    networks = build_default_networks()
    selected = network or _get_env("NETWORK", DEFAULT_NETWORK)
    if selected not in networks:
        raise UnknownNetworkError(selected)

    # CHRONOFLOW_RPC_URL overrides the selected network's endpoint
    rpc_override = _get_env("RPC_URL")
    if rpc_override:
        networks[selected].rpc_url = rpc_override

    addresses: Dict[str, Dict[ContractName, str]] = {}
    for contract, env_key in _ADDRESS_ENV_KEYS.items():
        value = _get_env(env_key)
        if value:
            addresses.setdefault(selected, {})[contract] = value

    deployments_dir = _get_env("DEPLOYMENTS_DIR", "deployments")

    config = ChronoFlowConfig(
        networks=networks,
        network=selected,
        addresses=addresses,
        artifacts_dir=Path(_get_env("ARTIFACTS_DIR", "artifacts")),
        deployments_dir=Path(deployments_dir) if deployments_dir else None,
        receipt_timeout_seconds=float(_get_env("RECEIPT_TIMEOUT", "120")),
    )

    if _get_env("MASK_ADDRESSES", "").lower() in ("1", "true", "yes"):
        config.logging.mask_addresses = True

    return config
