"""Loading of compiled Hardhat artifacts used for contract creation."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ArtifactNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ContractArtifact:
    """ABI and creation bytecode of a compiled contract."""
    contract_name: str
    abi: List[Dict[str, Any]] = field(repr=False)
    bytecode: str = field(repr=False)
    source_name: Optional[str] = None


class ArtifactStore:
    """
    Reads artifacts from a Hardhat ``artifacts`` directory.

    Hardhat writes ``artifacts/contracts/<Source>.sol/<Name>.json``; the
    source file is assumed to share the contract's name unless found
    elsewhere under the directory.
    """

    def __init__(self, artifacts_dir: Path | str):
        self.artifacts_dir = Path(artifacts_dir)
        self._cache: Dict[str, ContractArtifact] = {}

    def _locate(self, contract_name: str) -> Path:
        default = self.artifacts_dir / "contracts" / f"{contract_name}.sol" / f"{contract_name}.json"
        if default.exists():
            return default

        if self.artifacts_dir.is_dir():
            for candidate in self.artifacts_dir.rglob(f"{contract_name}.json"):
                # Skip build-info and other non-contract JSON
                if candidate.parent.suffix == ".sol":
                    return candidate

        raise ArtifactNotFoundError(contract_name, str(default))

    def get(self, contract_name: str) -> ContractArtifact:
        if contract_name in self._cache:
            return self._cache[contract_name]

        path = self._locate(contract_name)
        with open(path) as f:
            data = json.load(f)

        bytecode = data.get("bytecode") or ""
        if bytecode in ("", "0x"):
            # Interfaces and abstract contracts compile without bytecode
            raise ArtifactNotFoundError(contract_name, str(path), reason="has no bytecode")

        artifact = ContractArtifact(
            contract_name=data.get("contractName", contract_name),
            abi=data["abi"],
            bytecode=bytecode,
            source_name=data.get("sourceName"),
        )
        logger.debug(f"Loaded artifact {artifact.contract_name} from {path}")
        self._cache[contract_name] = artifact
        return artifact

    def register(self, artifact: ContractArtifact) -> None:
        """Add an artifact that does not live on disk."""
        self._cache[artifact.contract_name] = artifact
