"""
Client factory for the ChronoFlow contracts.

Architecture:
- Uses web3.py (HTTPProvider) for all chain access
- ``ChainClient`` pairs a Web3 instance with an optional local signing account
- ``ContractHandle`` exposes one method per ABI entry point under ``.read``
  (eth_call, no signer) and ``.write`` (signed transaction)

Handles do not validate the address or ABI they are given. The web3 contract
object is built on first use, so a bad address surfaces when a call is made.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Optional, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .config import ChronoFlowConfig, build_default_config
from .contracts import ContractName, InterfaceDescription, get_interface
from .exceptions import (
    ContractNotConfiguredError,
    SignerRequiredError,
    TransactionFailedError,
)
from .logging_utils import ChainLogger, OperationType
from .models import ListingRecord, StreamRecord

logger = logging.getLogger(__name__)


@dataclass
class ChainClient:
    """A connected Web3 instance, optionally bound to a signing account."""
    w3: Web3
    network: str
    account: Optional[LocalAccount] = None
    config: Optional[ChronoFlowConfig] = None

    @property
    def is_wallet(self) -> bool:
        return self.account is not None

    @property
    def address(self) -> Optional[str]:
        return self.account.address if self.account else None

    def is_connected(self) -> bool:
        return self.w3.is_connected()

    def get_config(self) -> ChronoFlowConfig:
        if self.config is None:
            self.config = build_default_config(self.network)
        return self.config


def init_public_client(
    rpc_url: Optional[str] = None,
    config: Optional[ChronoFlowConfig] = None,
    network: Optional[str] = None,
) -> ChainClient:
    """
    Create a read-only client.

    Args:
        rpc_url: Node endpoint; defaults to the configured network's RPC URL
        config: Configuration to use (built from the environment if omitted)
        network: Network name; defaults to ``config.network``
    """
    config = config or build_default_config(network)
    network = network or config.network
    url = rpc_url or config.get_network(network).rpc_url

    w3 = Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": config.http_timeout_seconds}))
    return ChainClient(w3=w3, network=network, config=config)


def init_wallet_client(
    account: Union[str, LocalAccount],
    rpc_url: Optional[str] = None,
    config: Optional[ChronoFlowConfig] = None,
    network: Optional[str] = None,
) -> ChainClient:
    """
    Create a client able to sign transactions.

    Args:
        account: Hex private key or an eth_account LocalAccount
    """
    client = init_public_client(rpc_url=rpc_url, config=config, network=network)
    if isinstance(account, str):
        account = Account.from_key(account)
    client.account = account
    client.w3.eth.default_account = account.address
    return client


def send_transaction(
    client: ChainClient,
    tx: Dict[str, Any],
    description: str,
    chain_logger: Optional[ChainLogger] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Sign a built transaction with the client's account, send it and wait
    for the receipt.

    Raises:
        SignerRequiredError: client has no account
        TransactionFailedError: receipt status is 0
    """
    if client.account is None:
        raise SignerRequiredError(tx.get("to") or "<create>", description)

    chain_logger = chain_logger or ChainLogger(config=client.get_config().logging)
    timeout = timeout if timeout is not None else client.get_config().receipt_timeout_seconds
    w3 = client.w3

    signed = client.account.sign_transaction(tx)
    tx_hash = Web3.to_hex(w3.eth.send_raw_transaction(signed.raw_transaction))
    chain_logger.log_transaction_submitted(
        tx_hash=tx_hash,
        chain=client.network,
        from_address=client.account.address,
        to_address=tx.get("to"),
        description=description,
    )

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    if receipt["status"] != 1:
        chain_logger.log_transaction_failed(tx_hash, "reverted")
        raise TransactionFailedError(tx_hash, dict(receipt))

    chain_logger.log_transaction_confirmed(
        tx_hash=tx_hash,
        block_number=receipt["blockNumber"],
        gas_used=receipt["gasUsed"],
        contract_address=receipt.get("contractAddress"),
    )
    return receipt


class _FunctionNamespace:
    """Attribute access to a handle's entry points, filtered by mutability."""

    def __init__(self, handle: "ContractHandle", read_only: bool):
        self._handle = handle
        self._read_only = read_only

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        interface = self._handle.interface
        if not interface.get_function(name):
            raise AttributeError(f"{interface.name} has no function {name}")

        if interface.is_read_only(name) != self._read_only:
            other = "write" if self._read_only else "read"
            raise AttributeError(
                f"{interface.name}.{name} is not available under "
                f"{'read' if self._read_only else 'write'}; use .{other}"
            )

        if self._read_only:
            return partial(self._handle.call, name)
        return partial(self._handle.transact, name)

    def __dir__(self):
        functions = (
            self._handle.interface.read_functions
            if self._read_only
            else self._handle.interface.write_functions
        )
        return sorted({f["name"] for f in functions})


class ContractHandle:
    """
    Callable handle for one deployed contract.

    Usage:
        core = get_chronoflow_core_contract(init_public_client())
        next_id = core.read.nextStreamId()
    """

    def __init__(
        self,
        client: ChainClient,
        interface: InterfaceDescription,
        address: str,
        chain_logger: Optional[ChainLogger] = None,
    ):
        self.client = client
        self.interface = interface
        self.address = address
        self._chain_logger = chain_logger
        self._contract = None

        self.read = _FunctionNamespace(self, read_only=True)
        self.write = _FunctionNamespace(self, read_only=False)

    def __repr__(self) -> str:
        return f"ContractHandle({self.interface.name} at {self.address} on {self.client.network})"

    @property
    def chain_logger(self) -> ChainLogger:
        if self._chain_logger is None:
            self._chain_logger = ChainLogger(config=self.client.get_config().logging)
        return self._chain_logger

    @property
    def contract(self):
        """The web3 contract object, built on first access."""
        if self._contract is None:
            self._contract = self.client.w3.eth.contract(
                address=Web3.to_checksum_address(self.address),
                abi=self.interface.as_list(),
            )
        return self._contract

    @property
    def events(self):
        return self.contract.events

    def call(self, function_name: str, *args: Any, block_identifier: Any = "latest") -> Any:
        """Run a read-only entry point through eth_call."""
        fn = getattr(self.contract.functions, function_name)(*args)
        return fn.call(block_identifier=block_identifier)

    def transact(self, function_name: str, *args: Any, value: int = 0) -> Dict[str, Any]:
        """Send a state-mutating call and return its receipt."""
        account = self.client.account
        if account is None:
            raise SignerRequiredError(self.interface.name, function_name)

        with self.chain_logger.operation_context(
            OperationType.CONTRACT_WRITE,
            self.client.network,
            contract=self.interface.name,
            function=function_name,
        ):
            w3 = self.client.w3
            fn = getattr(self.contract.functions, function_name)(*args)
            tx = fn.build_transaction({
                "from": account.address,
                "nonce": w3.eth.get_transaction_count(account.address, "pending"),
                "value": value,
            })
            return send_transaction(
                self.client,
                tx,
                f"{self.interface.name}.{function_name}",
                chain_logger=self.chain_logger,
            )


def get_contract(
    client: ChainClient,
    name: Union[ContractName, str],
    address: Optional[str] = None,
    chain_logger: Optional[ChainLogger] = None,
) -> ContractHandle:
    """Bind a client to a contract's interface at ``address`` (or the configured one)."""
    name = ContractName(name)
    if address is None:
        address = client.get_config().get_address(name, client.network)
        if not address:
            raise ContractNotConfiguredError(name.value, client.network)
    return ContractHandle(client, get_interface(name), address, chain_logger)


def get_stream_nft_contract(client: ChainClient, address: Optional[str] = None) -> ContractHandle:
    return get_contract(client, ContractName.STREAM_NFT, address)


def get_chronoflow_core_contract(client: ChainClient, address: Optional[str] = None) -> ContractHandle:
    return get_contract(client, ContractName.CHRONOFLOW_CORE, address)


def get_marketplace_contract(client: ChainClient, address: Optional[str] = None) -> ContractHandle:
    return get_contract(client, ContractName.MARKETPLACE, address)


# ==================== Typed reads and writes ====================


def get_next_stream_id(core: ContractHandle) -> int:
    return int(core.read.nextStreamId())


def get_stream(core: ContractHandle, stream_id: int) -> StreamRecord:
    """Read and decode ``streams(stream_id)``."""
    return StreamRecord.from_tuple(stream_id, core.read.streams(stream_id))


def get_listing(marketplace: ContractHandle, token_id: int) -> ListingRecord:
    """Read and decode ``listings(token_id)``."""
    return ListingRecord.from_tuple(token_id, marketplace.read.listings(token_id))


def create_stream(
    core: ContractHandle,
    recipient: str,
    deposit: int,
    token_address: str,
    start_time: int,
    stop_time: int,
) -> int:
    """
    Create a stream and return its id.

    The payer (the client's account) must have approved ``deposit`` of the
    token to the core contract beforehand.

    Returns:
        Stream id taken from the StreamCreated event
    """
    receipt = core.write.createStream(
        Web3.to_checksum_address(recipient),
        deposit,
        Web3.to_checksum_address(token_address),
        start_time,
        stop_time,
    )
    events = core.events.StreamCreated().process_receipt(receipt)
    if not events:
        raise TransactionFailedError(Web3.to_hex(receipt["transactionHash"]), dict(receipt))
    stream_id = int(events[0]["args"]["streamId"])
    logger.info(f"Created stream {stream_id} for {recipient}")
    return stream_id


def list_nft(marketplace: ContractHandle, token_id: int, price: int) -> Dict[str, Any]:
    """List a stream token for sale; the marketplace must be approved for it."""
    return marketplace.write.listNFT(token_id, price)


def buy_nft(marketplace: ContractHandle, token_id: int) -> Dict[str, Any]:
    """Buy a listed token, paying the listing price in the native token."""
    listing = get_listing(marketplace, token_id)
    return marketplace.write.buyNFT(token_id, value=listing.price)
