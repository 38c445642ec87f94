"""
Logging utilities for ChronoFlow chain operations.

Features:
- Operation context tracking (deployment steps, contract calls)
- Transaction lifecycle logging
- Address masking
"""
from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Optional

from .config import LoggingConfig

logger = logging.getLogger(__name__)


class OperationType(str, Enum):
    """Types of chain operations."""
    CONTRACT_WRITE = "contract_write"
    DEPLOYMENT = "deployment"
    DEPLOYMENT_STEP = "deployment_step"


@dataclass
class OperationContext:
    """Context for a chain operation."""
    operation_id: str
    operation_type: OperationType
    chain: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    duration_ms: Optional[float] = None
    success: bool = False
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def complete(self, success: bool = True, error: Optional[str] = None) -> None:
        """Mark operation as complete."""
        self.completed_at = datetime.now(timezone.utc)
        self.duration_ms = (
            (self.completed_at - self.started_at).total_seconds() * 1000
        )
        self.success = success
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "operation_type": self.operation_type.value,
            "chain": self.chain,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "error": self.error,
            "metadata": self.metadata,
        }


@dataclass
class TransactionLog:
    """Log entry for a transaction."""
    tx_hash: str
    chain: str
    from_address: str
    to_address: Optional[str]
    description: str
    submitted_at: datetime
    status: str = "pending"
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    contract_address: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self, mask_addresses: bool = False) -> Dict[str, Any]:
        def show(address: Optional[str]) -> Optional[str]:
            if address and mask_addresses:
                return mask_address(address)
            return address

        return {
            "tx_hash": self.tx_hash,
            "chain": self.chain,
            "from_address": show(self.from_address),
            "to_address": show(self.to_address),
            "description": self.description,
            "submitted_at": self.submitted_at.isoformat(),
            "status": self.status,
            "block_number": self.block_number,
            "gas_used": self.gas_used,
            "contract_address": self.contract_address,
            "error": self.error,
        }


def mask_address(address: str) -> str:
    """Mask middle portion of address for privacy."""
    if len(address) < 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


class ChainLogger:
    """
    Structured logger for chain operations.

    Tracks operation contexts and the lifecycle of every transaction it is
    told about (submitted, confirmed, failed).
    """

    def __init__(
        self,
        name: str = "chronoflow",
        config: Optional[LoggingConfig] = None,
    ):
        self._logger = logging.getLogger(name)
        self._config = config or LoggingConfig()
        self._operation_counter = 0
        self._transactions: Dict[str, TransactionLog] = {}

    def _generate_operation_id(self) -> str:
        self._operation_counter += 1
        timestamp = int(time.time() * 1000)
        return f"op_{timestamp}_{self._operation_counter}"

    def _get_level(self, level_str: str) -> int:
        return getattr(logging, level_str.upper(), logging.INFO)

    @contextmanager
    def operation_context(
        self,
        operation_type: OperationType,
        chain: str,
        **metadata,
    ) -> Iterator[OperationContext]:
        """
        Context manager for tracking an operation.

        Usage:
            with chain_logger.operation_context(OperationType.DEPLOYMENT_STEP, "hardhat") as ctx:
                ctx.metadata["address"] = address
        """
        ctx = OperationContext(
            operation_id=self._generate_operation_id(),
            operation_type=operation_type,
            chain=chain,
            metadata=metadata,
        )

        self._logger.debug(
            f"Starting {operation_type.value} on {chain}",
            extra={"operation": ctx.to_dict()},
        )

        try:
            yield ctx
            ctx.complete(success=True)

        except Exception as e:
            ctx.complete(success=False, error=str(e))
            raise

        finally:
            level = (
                self._get_level(self._config.error_level)
                if not ctx.success
                else self._get_level(self._config.operation_level)
            )
            self._logger.log(
                level,
                f"Completed {operation_type.value} on {chain} in {ctx.duration_ms:.0f}ms "
                f"(success={ctx.success})",
                extra={"operation": ctx.to_dict()},
            )

    def log_transaction_submitted(
        self,
        tx_hash: str,
        chain: str,
        from_address: str,
        to_address: Optional[str],
        description: str,
    ) -> None:
        """Log transaction submission."""
        entry = TransactionLog(
            tx_hash=tx_hash,
            chain=chain,
            from_address=from_address,
            to_address=to_address,
            description=description,
            submitted_at=datetime.now(timezone.utc),
            status="submitted",
        )
        self._transactions[tx_hash] = entry

        self._logger.log(
            self._get_level(self._config.transaction_level),
            f"Transaction submitted: {tx_hash} on {chain} ({description})",
            extra={"transaction": entry.to_dict(self._config.mask_addresses)},
        )

    def log_transaction_confirmed(
        self,
        tx_hash: str,
        block_number: int,
        gas_used: int,
        contract_address: Optional[str] = None,
    ) -> None:
        """Log transaction confirmation."""
        entry = self._transactions.get(tx_hash)
        if entry is not None:
            entry.status = "confirmed"
            entry.block_number = block_number
            entry.gas_used = gas_used
            entry.contract_address = contract_address

        self._logger.log(
            self._get_level(self._config.confirmation_level),
            f"Transaction confirmed: {tx_hash} in block {block_number}",
            extra={"transaction": entry.to_dict(self._config.mask_addresses) if entry else {}},
        )

    def log_transaction_failed(self, tx_hash: str, error: str) -> None:
        """Log transaction failure."""
        entry = self._transactions.get(tx_hash)
        if entry is not None:
            entry.status = "failed"
            entry.error = error

        self._logger.log(
            self._get_level(self._config.error_level),
            f"Transaction failed: {tx_hash} - {error}",
            extra={"transaction": entry.to_dict(self._config.mask_addresses) if entry else {}},
        )

    def get_transaction(self, tx_hash: str) -> Optional[TransactionLog]:
        return self._transactions.get(tx_hash)

    def get_transaction_metrics(self) -> Dict[str, Any]:
        """Count tracked transactions by status."""
        if not self._transactions:
            return {"total_transactions": 0}

        statuses: Dict[str, int] = {}
        for tx in self._transactions.values():
            statuses[tx.status] = statuses.get(tx.status, 0) + 1

        return {
            "total_transactions": len(self._transactions),
            "status_breakdown": statuses,
        }


def setup_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Set up logging configuration.

    Args:
        level: Log level
        format_string: Custom format string
        json_format: Use JSON formatting
    """
    if format_string is None:
        if json_format:
            format_string = json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "name": "%(name)s",
                "message": "%(message)s",
            })
        else:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=format_string,
    )

    logging.getLogger("chronoflow").setLevel(getattr(logging, level.upper()))
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
