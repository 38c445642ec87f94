"""
Deployment orchestration for the ChronoFlow contracts.

A ``DeploymentModule`` declares contract creations and configuration calls as
futures. A future stands in for an address that only exists once its step has
run; passing it as an argument to a later step links the two. The
``DeploymentExecutor`` runs the steps strictly in declaration order and
substitutes resolved addresses for futures.

ChronoFlow has a constructor cycle (StreamNFT needs the core address, the core
needs the StreamNFT address). It is broken in three phases: create StreamNFT
with the zero address, create the core with StreamNFT, then link StreamNFT to
the core with ``setCoreContract``.

A failed step aborts the run. Nothing is retried or rolled back; contracts
created before the failure are reported in ``DeploymentError.resolved``.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from web3 import Web3

from .artifacts import ArtifactStore
from .client import ChainClient, ContractHandle, get_contract, send_transaction
from .config import ChronoFlowConfig
from .contracts import ZERO_ADDRESS, ContractName, InterfaceDescription
from .exceptions import DeploymentError, SignerRequiredError, UnresolvedFutureError
from .logging_utils import ChainLogger, OperationType

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ContractFuture:
    """Artifact reference for a contract created by a deployment step."""
    id: str
    module_id: str
    contract_name: str
    args: Tuple[Any, ...] = ()
    tx_hash: Optional[str] = None
    _address: Optional[str] = field(default=None, repr=False)

    @property
    def is_resolved(self) -> bool:
        return self._address is not None

    @property
    def address(self) -> str:
        if self._address is None:
            raise UnresolvedFutureError(self.id)
        return self._address

    def resolve(self, address: str, tx_hash: Optional[str] = None) -> None:
        self._address = address
        self.tx_hash = tx_hash

    @property
    def dependencies(self) -> List["ContractFuture"]:
        return _futures_in(self.args)


@dataclass(eq=False)
class CallFuture:
    """A configuration call on a contract created earlier in the module."""
    id: str
    module_id: str
    contract: ContractFuture
    function_name: str
    args: Tuple[Any, ...] = ()
    tx_hash: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.tx_hash is not None

    def resolve(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash

    @property
    def dependencies(self) -> List[ContractFuture]:
        return [self.contract] + _futures_in(self.args)


Future = Union[ContractFuture, CallFuture]


def _futures_in(values: Any) -> List[ContractFuture]:
    found: List[ContractFuture] = []
    if isinstance(values, ContractFuture):
        found.append(values)
    elif isinstance(values, (list, tuple)):
        for value in values:
            found.extend(_futures_in(value))
    return found


def _resolve_args(values: Any) -> Any:
    """Replace futures with their addresses, recursing into lists and tuples."""
    if isinstance(values, ContractFuture):
        return values.address
    if isinstance(values, tuple):
        return tuple(_resolve_args(v) for v in values)
    if isinstance(values, list):
        return [_resolve_args(v) for v in values]
    return values


class DeploymentModule:
    """
    Ordered set of deployment steps.

    Usage:
        m = DeploymentModule("ChronoFlowModule")
        nft = m.contract("StreamNFT", [ZERO_ADDRESS])
        core = m.contract("ChronoFlowCore", [nft])
        m.call(nft, "setCoreContract", [core])
    """

    def __init__(self, module_id: str):
        self.module_id = module_id
        self.steps: List[Future] = []
        self.results: Dict[str, ContractFuture] = {}
        self._ids: Dict[str, Future] = {}

    def _register(self, future: Future) -> None:
        if future.id in self._ids:
            raise ValueError(f"Duplicate future id {future.id} in module {self.module_id}")
        for dependency in future.dependencies:
            # Only earlier steps of this module can be referenced, so
            # declaration order is always a valid execution order
            if self._ids.get(dependency.id) is not dependency:
                raise ValueError(
                    f"{future.id} depends on {dependency.id}, which is not an "
                    f"earlier step of module {self.module_id}"
                )
        self._ids[future.id] = future
        self.steps.append(future)

    def contract(self, contract_name: str, args: Optional[List[Any]] = None) -> ContractFuture:
        """Declare a contract creation with constructor ``args``."""
        future = ContractFuture(
            id=f"{self.module_id}#{contract_name}",
            module_id=self.module_id,
            contract_name=contract_name,
            args=tuple(args or ()),
        )
        self._register(future)
        return future

    def call(
        self,
        contract: ContractFuture,
        function_name: str,
        args: Optional[List[Any]] = None,
    ) -> CallFuture:
        """Declare a state-mutating call on a contract created by this module."""
        future = CallFuture(
            id=f"{self.module_id}#{contract.contract_name}.{function_name}",
            module_id=self.module_id,
            contract=contract,
            function_name=function_name,
            args=tuple(args or ()),
        )
        self._register(future)
        return future

    def returns(self, **futures: ContractFuture) -> None:
        """Name the contract futures handed back to the caller."""
        self.results.update(futures)


def build_chronoflow_module(module_id: str = "ChronoFlowModule") -> DeploymentModule:
    """The ChronoFlow deployment: StreamNFT, core, link, marketplace."""
    m = DeploymentModule(module_id)

    # StreamNFT does not know the core yet
    stream_nft = m.contract(ContractName.STREAM_NFT.value, [ZERO_ADDRESS])

    chrono_core = m.contract(ContractName.CHRONOFLOW_CORE.value, [stream_nft])

    # Owner is the deployer
    m.call(stream_nft, "setCoreContract", [chrono_core])

    marketplace = m.contract(ContractName.MARKETPLACE.value, [stream_nft])

    m.returns(stream_nft=stream_nft, chrono_core=chrono_core, marketplace=marketplace)
    return m


@dataclass
class DeploymentResult:
    """Outcome of a completed deployment."""
    module_id: str
    network: str
    chain_id: int
    addresses: Dict[str, str] = field(default_factory=dict)
    transactions: Dict[str, str] = field(default_factory=dict)
    contracts: Dict[str, ContractHandle] = field(default_factory=dict)
    record_path: Optional[Path] = None

    @property
    def stream_nft(self) -> ContractHandle:
        return self.contracts["stream_nft"]

    @property
    def chrono_core(self) -> ContractHandle:
        return self.contracts["chrono_core"]

    @property
    def marketplace(self) -> ContractHandle:
        return self.contracts["marketplace"]


class DeploymentExecutor:
    """Runs a DeploymentModule's steps one at a time against a wallet client."""

    def __init__(
        self,
        client: ChainClient,
        artifacts: ArtifactStore,
        config: Optional[ChronoFlowConfig] = None,
        chain_logger: Optional[ChainLogger] = None,
    ):
        self.client = client
        self.artifacts = artifacts
        self.config = config or client.get_config()
        self.chain_logger = chain_logger or ChainLogger(config=self.config.logging)

    def run(self, module: DeploymentModule) -> DeploymentResult:
        """
        Execute every step in order.

        Raises:
            UnresolvedFutureError: a step references a future that did not resolve
            DeploymentError: a step failed; later steps were not run
        """
        if self.client.account is None:
            raise SignerRequiredError(module.module_id, "deploy")

        resolved: Dict[str, str] = {}
        transactions: Dict[str, str] = {}
        network = self.client.network

        with self.chain_logger.operation_context(
            OperationType.DEPLOYMENT, network, module=module.module_id
        ):
            chain_id = self.client.w3.eth.chain_id

            for step in module.steps:
                for dependency in step.dependencies:
                    if not dependency.is_resolved:
                        raise UnresolvedFutureError(dependency.id)

                try:
                    with self.chain_logger.operation_context(
                        OperationType.DEPLOYMENT_STEP, network, step=step.id
                    ):
                        if isinstance(step, ContractFuture):
                            self._deploy(step)
                            resolved[step.id] = step.address
                        else:
                            self._call(step)
                except Exception as e:
                    raise DeploymentError(step.id, resolved, str(e)) from e

                transactions[step.id] = step.tx_hash

        result = DeploymentResult(
            module_id=module.module_id,
            network=network,
            chain_id=chain_id,
            addresses=resolved,
            transactions=transactions,
        )

        for key, future in module.results.items():
            self._remember_address(future)
            result.contracts[key] = self._handle_for(future)

        result.record_path = self._write_record(chain_id, resolved)
        return result

    def _next_nonce(self) -> int:
        return self.client.w3.eth.get_transaction_count(self.client.account.address, "pending")

    def _deploy(self, step: ContractFuture) -> None:
        artifact = self.artifacts.get(step.contract_name)
        args = _resolve_args(step.args)
        logger.info(f"Deploying {step.contract_name} with args {list(args)}")

        factory = self.client.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        tx = factory.constructor(*args).build_transaction({
            "from": self.client.account.address,
            "nonce": self._next_nonce(),
        })
        receipt = send_transaction(
            self.client,
            tx,
            f"create {step.contract_name}",
            chain_logger=self.chain_logger,
            timeout=self.config.receipt_timeout_seconds,
        )
        step.resolve(receipt["contractAddress"], tx_hash=_hex(receipt["transactionHash"]))
        logger.info(f"{step.contract_name} deployed to {step.address}")

    def _call(self, step: CallFuture) -> None:
        artifact = self.artifacts.get(step.contract.contract_name)
        args = _resolve_args(step.args)
        logger.info(f"Calling {step.contract.contract_name}.{step.function_name}({list(args)})")

        contract = self.client.w3.eth.contract(address=step.contract.address, abi=artifact.abi)
        fn = getattr(contract.functions, step.function_name)(*args)
        tx = fn.build_transaction({
            "from": self.client.account.address,
            "nonce": self._next_nonce(),
        })
        receipt = send_transaction(
            self.client,
            tx,
            f"{step.contract.contract_name}.{step.function_name}",
            chain_logger=self.chain_logger,
            timeout=self.config.receipt_timeout_seconds,
        )
        step.resolve(_hex(receipt["transactionHash"]))

    def _remember_address(self, future: ContractFuture) -> None:
        try:
            name = ContractName(future.contract_name)
        except ValueError:
            return
        self.config.set_address(name, future.address, self.client.network)

    def _handle_for(self, future: ContractFuture) -> ContractHandle:
        try:
            return get_contract(
                self.client,
                ContractName(future.contract_name),
                future.address,
                chain_logger=self.chain_logger,
            )
        except ValueError:
            artifact = self.artifacts.get(future.contract_name)
            return ContractHandle(
                self.client,
                InterfaceDescription.from_abi(future.contract_name, artifact.abi),
                future.address,
                self.chain_logger,
            )

    def _write_record(self, chain_id: int, addresses: Dict[str, str]) -> Optional[Path]:
        """
        Merge addresses into deployments/chain-<id>/deployed_addresses.json.

        An unreadable existing record is replaced. A write failure is logged
        and returns None; the deployment result is still returned.
        """
        path = self.config.deployed_addresses_path(chain_id)
        if path is None:
            return None

        existing: Dict[str, str] = {}
        if path.exists():
            try:
                with open(path) as f:
                    existing = json.load(f)
                if not isinstance(existing, dict):
                    raise ValueError("record is not a JSON object")
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable deployment record {path}: {e}")
                existing = {}
        existing.update(addresses)

        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(existing, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to write deployed addresses to {path}: {e}")
            return None

        logger.info(f"Wrote deployed addresses to {path}")
        return path


def _hex(value: Any) -> str:
    if isinstance(value, str):
        return value
    return Web3.to_hex(value)


def deploy_chronoflow(
    client: ChainClient,
    config: Optional[ChronoFlowConfig] = None,
    artifacts: Optional[ArtifactStore] = None,
) -> DeploymentResult:
    """Deploy and link StreamNFT, ChronoFlowCore and ChronoFlowMarketplace."""
    config = config or client.get_config()
    artifacts = artifacts or ArtifactStore(config.artifacts_dir)
    module = build_chronoflow_module(config.module_id)
    return DeploymentExecutor(client, artifacts, config).run(module)
