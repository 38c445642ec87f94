"""Tests for the client factory and contract handles."""
from unittest.mock import MagicMock, patch

import pytest
from web3 import Web3

from chronoflow.client import (
    ChainClient,
    buy_nft,
    create_stream,
    get_chronoflow_core_contract,
    get_contract,
    get_listing,
    get_marketplace_contract,
    get_next_stream_id,
    get_stream,
    get_stream_nft_contract,
    init_public_client,
    init_wallet_client,
    list_nft,
    send_transaction,
)
from chronoflow.config import ChronoFlowConfig, build_default_networks
from chronoflow.contracts import DEFAULT_ADDRESSES, ContractName, get_interface
from chronoflow.exceptions import (
    ContractNotConfiguredError,
    SignerRequiredError,
    TransactionFailedError,
)

CORE_ADDRESS = DEFAULT_ADDRESSES["somnia_testnet"][ContractName.CHRONOFLOW_CORE]
TEST_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


class TestInitClients:
    def test_public_client_uses_configured_rpc(self, somnia_config):
        with patch("chronoflow.client.Web3") as MockWeb3:
            client = init_public_client(config=somnia_config)

        MockWeb3.HTTPProvider.assert_called_once_with(
            "https://dream-rpc.somnia.network", request_kwargs={"timeout": 30.0}
        )
        assert client.network == "somnia_testnet"
        assert not client.is_wallet

    def test_public_client_rpc_override(self, somnia_config):
        with patch("chronoflow.client.Web3") as MockWeb3:
            init_public_client("http://127.0.0.1:8545", config=somnia_config)

        assert MockWeb3.HTTPProvider.call_args[0][0] == "http://127.0.0.1:8545"

    def test_wallet_client_from_private_key(self, somnia_config):
        with patch("chronoflow.client.Web3"):
            client = init_wallet_client(TEST_KEY, config=somnia_config)

        # Hardhat account #0
        assert client.address == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
        assert client.is_wallet
        assert client.w3.eth.default_account == client.address


class TestContractHandle:
    def test_default_address_from_config(self, public_client):
        core = get_chronoflow_core_contract(public_client)
        assert core.address == CORE_ADDRESS
        assert core.interface is get_interface(ContractName.CHRONOFLOW_CORE)

    def test_explicit_address(self, public_client, sample_eth_address):
        nft = get_stream_nft_contract(public_client, sample_eth_address)
        assert nft.address == sample_eth_address

    def test_no_address_configured(self, mock_web3):
        config = ChronoFlowConfig(networks=build_default_networks(), network="hardhat")
        client = ChainClient(w3=mock_web3, network="hardhat", config=config)

        with pytest.raises(ContractNotConfiguredError):
            get_marketplace_contract(client)

    def test_read_without_signer(self, public_client, mock_web3):
        contract = MagicMock()
        contract.functions.nextStreamId.return_value.call.return_value = 7
        mock_web3.eth.contract.return_value = contract

        core = get_chronoflow_core_contract(public_client)
        next_id = get_next_stream_id(core)

        assert next_id == 7
        assert next_id >= 0
        kwargs = mock_web3.eth.contract.call_args.kwargs
        assert kwargs["address"] == Web3.to_checksum_address(CORE_ADDRESS)
        assert kwargs["abi"] == get_interface(ContractName.CHRONOFLOW_CORE).as_list()

    def test_contract_built_lazily(self, public_client, mock_web3):
        get_chronoflow_core_contract(public_client)
        mock_web3.eth.contract.assert_not_called()

    def test_malformed_address_fails_at_call_time(self, public_client):
        core = get_contract(public_client, ContractName.CHRONOFLOW_CORE, "0x1234")

        with pytest.raises(ValueError):
            core.read.nextStreamId()

    def test_write_without_signer_fails_at_call_time(self, public_client, mock_web3):
        marketplace = get_marketplace_contract(public_client)

        with pytest.raises(SignerRequiredError) as exc_info:
            marketplace.write.listNFT(1, 10**18)

        assert exc_info.value.function == "listNFT"
        mock_web3.eth.send_raw_transaction.assert_not_called()

    def test_unknown_function(self, public_client):
        core = get_chronoflow_core_contract(public_client)
        with pytest.raises(AttributeError):
            core.read.doesNotExist

    def test_namespaces_enforce_mutability(self, public_client):
        core = get_chronoflow_core_contract(public_client)
        with pytest.raises(AttributeError):
            core.write.nextStreamId
        with pytest.raises(AttributeError):
            core.read.createStream

    def test_dir_lists_functions(self, public_client):
        market = get_marketplace_contract(public_client)
        assert "listings" in dir(market.read)
        assert "listNFT" in dir(market.write)
        assert "listNFT" not in dir(market.read)

    def test_write_signs_and_waits(self, wallet_client, mock_web3, fake_account):
        contract = MagicMock()
        contract.functions.listNFT.return_value.build_transaction.return_value = {
            "to": "0x6ff1561da1cce79765E2F541196894F9EF0BC170",
            "nonce": 5,
        }
        mock_web3.eth.contract.return_value = contract

        receipt = get_marketplace_contract(wallet_client).write.listNFT(3, 500)

        assert receipt["status"] == 1
        contract.functions.listNFT.assert_called_once_with(3, 500)
        params = contract.functions.listNFT.return_value.build_transaction.call_args[0][0]
        assert params == {"from": fake_account.address, "nonce": 5, "value": 0}
        mock_web3.eth.get_transaction_count.assert_called_once_with(fake_account.address, "pending")
        assert len(fake_account.signed) == 1
        mock_web3.eth.wait_for_transaction_receipt.assert_called_once()

    def test_reverted_write_raises(self, wallet_client, mock_web3):
        mock_web3.eth.contract.return_value = MagicMock()
        mock_web3.eth.wait_for_transaction_receipt.return_value = {
            "status": 0,
            "blockNumber": 101,
            "gasUsed": 30000,
            "transactionHash": b"\x11" * 32,
        }

        with pytest.raises(TransactionFailedError) as exc_info:
            get_marketplace_contract(wallet_client).write.unlistNFT(3)

        assert exc_info.value.tx_hash == "0x" + "11" * 32


class TestTypedHelpers:
    def test_get_stream(self, public_client, mock_web3, sample_eth_address):
        contract = MagicMock()
        contract.functions.streams.return_value.call.return_value = (
            sample_eth_address, sample_eth_address, 100, sample_eth_address, 10, 20, 100, 0,
        )
        mock_web3.eth.contract.return_value = contract

        record = get_stream(get_chronoflow_core_contract(public_client), 1)

        contract.functions.streams.assert_called_once_with(1)
        assert record.deposit == 100
        assert record.withdrawn_amount == 0

    def test_get_listing(self, public_client, mock_web3, sample_eth_address):
        contract = MagicMock()
        contract.functions.listings.return_value.call.return_value = (sample_eth_address, 42)
        mock_web3.eth.contract.return_value = contract

        listing = get_listing(get_marketplace_contract(public_client), 9)

        assert listing.token_id == 9
        assert listing.price == 42
        assert listing.is_active

    def test_create_stream_returns_event_id(self, wallet_client, mock_web3, sample_eth_address):
        contract = MagicMock()
        contract.functions.createStream.return_value.build_transaction.return_value = {"nonce": 5}
        contract.events.StreamCreated.return_value.process_receipt.return_value = [
            {"args": {"streamId": 12}}
        ]
        mock_web3.eth.contract.return_value = contract

        core = get_chronoflow_core_contract(wallet_client)
        stream_id = create_stream(core, sample_eth_address, 1000, sample_eth_address, 100, 200)

        assert stream_id == 12
        args = contract.functions.createStream.call_args[0]
        assert args[1:] == (1000, Web3.to_checksum_address(sample_eth_address), 100, 200)

    def test_create_stream_without_signer(self, public_client, sample_eth_address):
        core = get_chronoflow_core_contract(public_client)
        with pytest.raises(SignerRequiredError):
            create_stream(core, sample_eth_address, 1000, sample_eth_address, 100, 200)

    def test_list_nft(self, wallet_client, mock_web3):
        contract = MagicMock()
        contract.functions.listNFT.return_value.build_transaction.return_value = {"nonce": 5}
        mock_web3.eth.contract.return_value = contract

        receipt = list_nft(get_marketplace_contract(wallet_client), 4, 10**18)

        assert receipt["status"] == 1
        contract.functions.listNFT.assert_called_once_with(4, 10**18)
        params = contract.functions.listNFT.return_value.build_transaction.call_args[0][0]
        assert params["value"] == 0

    def test_buy_nft_pays_listing_price(self, wallet_client, mock_web3, sample_eth_address):
        contract = MagicMock()
        contract.functions.listings.return_value.call.return_value = (sample_eth_address, 777)
        contract.functions.buyNFT.return_value.build_transaction.return_value = {"nonce": 5}
        mock_web3.eth.contract.return_value = contract

        buy_nft(get_marketplace_contract(wallet_client), 4)

        contract.functions.listings.assert_called_once_with(4)
        contract.functions.buyNFT.assert_called_once_with(4)
        params = contract.functions.buyNFT.return_value.build_transaction.call_args[0][0]
        assert params["value"] == 777


class TestSendTransaction:
    def test_default_timeout_from_client_config(self, wallet_client, mock_web3):
        send_transaction(wallet_client, {"to": CORE_ADDRESS, "nonce": 5}, "noop")
        assert mock_web3.eth.wait_for_transaction_receipt.call_args[1]["timeout"] == (
            wallet_client.config.receipt_timeout_seconds
        )

    def test_explicit_timeout(self, wallet_client, mock_web3):
        send_transaction(wallet_client, {"to": CORE_ADDRESS, "nonce": 5}, "noop", timeout=7)
        assert mock_web3.eth.wait_for_transaction_receipt.call_args[1]["timeout"] == 7
