"""Tests for chain operation logging."""
import logging

import pytest

from chronoflow.config import LoggingConfig
from chronoflow.logging_utils import ChainLogger, OperationType, mask_address


class TestOperationContext:
    def test_success(self, caplog):
        chain_logger = ChainLogger("chronoflow.test")
        with caplog.at_level(logging.INFO, logger="chronoflow.test"):
            with chain_logger.operation_context(OperationType.DEPLOYMENT_STEP, "hardhat", step="x") as ctx:
                ctx.metadata["address"] = "0x1"

        assert ctx.success
        assert ctx.duration_ms is not None
        assert "deployment_step on hardhat" in caplog.text

    def test_failure_propagates(self, caplog):
        chain_logger = ChainLogger("chronoflow.test")
        with caplog.at_level(logging.INFO, logger="chronoflow.test"):
            with pytest.raises(RuntimeError):
                with chain_logger.operation_context(OperationType.DEPLOYMENT, "hardhat") as ctx:
                    raise RuntimeError("boom")

        assert not ctx.success
        assert ctx.error == "boom"
        assert any(r.levelno == logging.ERROR for r in caplog.records)


class TestTransactionLifecycle:
    def test_submitted_then_confirmed(self, sample_tx_hash, sample_eth_address):
        chain_logger = ChainLogger("chronoflow.test")
        chain_logger.log_transaction_submitted(
            sample_tx_hash, "hardhat", sample_eth_address, None, "create StreamNFT"
        )
        chain_logger.log_transaction_confirmed(sample_tx_hash, 12, 900000, sample_eth_address)

        entry = chain_logger.get_transaction(sample_tx_hash)
        assert entry.status == "confirmed"
        assert entry.contract_address == sample_eth_address
        assert chain_logger.get_transaction_metrics() == {
            "total_transactions": 1,
            "status_breakdown": {"confirmed": 1},
        }

    def test_failed(self, sample_tx_hash, sample_eth_address):
        chain_logger = ChainLogger("chronoflow.test")
        chain_logger.log_transaction_submitted(
            sample_tx_hash, "hardhat", sample_eth_address, sample_eth_address, "listNFT"
        )
        chain_logger.log_transaction_failed(sample_tx_hash, "reverted")
        assert chain_logger.get_transaction(sample_tx_hash).status == "failed"

    def test_masking(self, sample_tx_hash, sample_eth_address):
        chain_logger = ChainLogger("chronoflow.test", LoggingConfig(mask_addresses=True))
        chain_logger.log_transaction_submitted(
            sample_tx_hash, "hardhat", sample_eth_address, None, "create"
        )
        data = chain_logger.get_transaction(sample_tx_hash).to_dict(mask_addresses=True)
        assert data["from_address"] == "0x1234...7890"
        assert data["to_address"] is None


def test_mask_address_short_values_untouched():
    assert mask_address("0x12") == "0x12"
