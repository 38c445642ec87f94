"""
Interface registry for the ChronoFlow contracts.

Pairs each contract's ABI with a classified view of its entry points and a
default address per network. Pure data: nothing here talks to the network and
nothing is checked against the deployed bytecode.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .abis import CHRONOFLOW_CORE_ABI, MARKETPLACE_ABI, STREAM_NFT_ABI
from .exceptions import UnknownNetworkError


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

READ_MUTABILITY = ("view", "pure")
WRITE_MUTABILITY = ("nonpayable", "payable")


class ContractName(str, Enum):
    """Contracts making up a ChronoFlow deployment."""
    STREAM_NFT = "StreamNFT"
    CHRONOFLOW_CORE = "ChronoFlowCore"
    MARKETPLACE = "ChronoFlowMarketplace"


@dataclass(frozen=True, eq=False)
class InterfaceDescription:
    """Ordered ABI entries of one contract."""
    name: str
    abi: Tuple[Dict[str, Any], ...] = field(repr=False)

    @classmethod
    def from_abi(cls, name: str, abi: List[Dict[str, Any]]) -> "InterfaceDescription":
        return cls(name=name, abi=tuple(abi))

    def _of_type(self, entry_type: str) -> List[Dict[str, Any]]:
        return [entry for entry in self.abi if entry.get("type") == entry_type]

    @property
    def constructor(self) -> Optional[Dict[str, Any]]:
        entries = self._of_type("constructor")
        return entries[0] if entries else None

    @property
    def functions(self) -> List[Dict[str, Any]]:
        return self._of_type("function")

    @property
    def events(self) -> List[Dict[str, Any]]:
        return self._of_type("event")

    @property
    def errors(self) -> List[Dict[str, Any]]:
        return self._of_type("error")

    @property
    def read_functions(self) -> List[Dict[str, Any]]:
        """Functions callable with eth_call and no signer."""
        return [f for f in self.functions if f.get("stateMutability") in READ_MUTABILITY]

    @property
    def write_functions(self) -> List[Dict[str, Any]]:
        """Functions that need a signed transaction."""
        return [f for f in self.functions if f.get("stateMutability") in WRITE_MUTABILITY]

    def function_names(self) -> List[str]:
        """Distinct function names, in ABI order."""
        names: List[str] = []
        for entry in self.functions:
            if entry["name"] not in names:
                names.append(entry["name"])
        return names

    def get_function(self, name: str) -> List[Dict[str, Any]]:
        """Return every overload of ``name`` (empty if none)."""
        return [f for f in self.functions if f["name"] == name]

    def is_read_only(self, name: str) -> bool:
        overloads = self.get_function(name)
        if not overloads:
            raise KeyError(f"{self.name} has no function {name}")
        return all(f.get("stateMutability") in READ_MUTABILITY for f in overloads)

    def event_names(self) -> List[str]:
        return [e["name"] for e in self.events]

    def as_list(self) -> List[Dict[str, Any]]:
        """ABI as a plain list, the shape web3 and JSON tooling expect."""
        return list(self.abi)


INTERFACES: Dict[ContractName, InterfaceDescription] = {
    ContractName.STREAM_NFT: InterfaceDescription.from_abi(
        ContractName.STREAM_NFT.value, STREAM_NFT_ABI
    ),
    ContractName.CHRONOFLOW_CORE: InterfaceDescription.from_abi(
        ContractName.CHRONOFLOW_CORE.value, CHRONOFLOW_CORE_ABI
    ),
    ContractName.MARKETPLACE: InterfaceDescription.from_abi(
        ContractName.MARKETPLACE.value, MARKETPLACE_ABI
    ),
}


# Deployed addresses by network. Operator-supplied configuration takes
# precedence; see ChronoFlowConfig.
DEFAULT_ADDRESSES: Dict[str, Dict[ContractName, str]] = {
    "somnia_testnet": {
        ContractName.STREAM_NFT: "0x75a0d486ce7730fA3752f91D3101997ABc942297",
        ContractName.CHRONOFLOW_CORE: "0x5803335a6B851C0438281c7F37E95480f7fc586a",
        ContractName.MARKETPLACE: "0x6ff1561da1cce79765E2F541196894F9EF0BC170",
    },
    # Local Hardhat node: populated from deployed_addresses.json after a deploy
    "hardhat": {},
}


def get_interface(name: ContractName | str) -> InterfaceDescription:
    """Look up the interface description for a contract."""
    return INTERFACES[ContractName(name)]


def get_default_address(name: ContractName | str, network: str = "somnia_testnet") -> Optional[str]:
    """Default address of a contract on a network, or None if not deployed there."""
    if network not in DEFAULT_ADDRESSES:
        raise UnknownNetworkError(network)
    return DEFAULT_ADDRESSES[network].get(ContractName(name))
