"""
Pytest configuration for chronoflow tests.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# Add package source to path
package_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(package_src))

from chronoflow.client import ChainClient
from chronoflow.config import ChronoFlowConfig, build_default_networks


_CHRONOFLOW_ENV = (
    "CHRONOFLOW_NETWORK",
    "CHRONOFLOW_RPC_URL",
    "CHRONOFLOW_STREAM_NFT_ADDRESS",
    "CHRONOFLOW_CORE_ADDRESS",
    "CHRONOFLOW_MARKETPLACE_ADDRESS",
    "CHRONOFLOW_ARTIFACTS_DIR",
    "CHRONOFLOW_DEPLOYMENTS_DIR",
    "CHRONOFLOW_SOMNIA_TESTNET_RPC_URL",
    "CHRONOFLOW_HARDHAT_RPC_URL",
    "CHRONOFLOW_MASK_ADDRESSES",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the operator's CHRONOFLOW_* variables out of unit tests."""
    for key in _CHRONOFLOW_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def sample_eth_address():
    """Valid Ethereum address for testing."""
    return "0x1234567890123456789012345678901234567890"


@pytest.fixture
def sample_tx_hash():
    """Valid transaction hash for testing."""
    return "0x" + "a" * 64


@pytest.fixture
def somnia_config():
    return ChronoFlowConfig(networks=build_default_networks(), network="somnia_testnet")


@pytest.fixture
def mock_web3():
    return MagicMock()


@pytest.fixture
def public_client(mock_web3, somnia_config):
    """Read-only client over a mocked Web3."""
    return ChainClient(w3=mock_web3, network="somnia_testnet", config=somnia_config)


class FakeAccount:
    """Signing account that hands the unsigned transaction through as the raw payload."""

    def __init__(self, address: str = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"):
        self.address = address
        self.signed = []

    def sign_transaction(self, tx):
        self.signed.append(tx)
        return SimpleNamespace(raw_transaction=tx)


@pytest.fixture
def fake_account():
    return FakeAccount()


@pytest.fixture
def wallet_client(mock_web3, somnia_config, fake_account):
    """Client with a signing account over a mocked Web3."""
    mock_web3.eth.send_raw_transaction.return_value = b"\x11" * 32
    mock_web3.eth.wait_for_transaction_receipt.return_value = {
        "status": 1,
        "blockNumber": 100,
        "gasUsed": 50000,
        "contractAddress": None,
        "transactionHash": b"\x11" * 32,
    }
    mock_web3.eth.get_transaction_count.return_value = 5
    return ChainClient(
        w3=mock_web3, network="somnia_testnet", account=fake_account, config=somnia_config
    )
