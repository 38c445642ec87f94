"""Exceptions raised by the ChronoFlow bindings and deployment tooling.

Transport errors from web3 / requests are not wrapped; they propagate as-is.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ChronoFlowError(Exception):
    """Base class for ChronoFlow errors."""


class UnknownNetworkError(ChronoFlowError):
    """Raised when a network name is not configured."""

    def __init__(self, network: str):
        self.network = network
        super().__init__(f"Unknown network: {network}")


class ContractNotConfiguredError(ChronoFlowError):
    """Raised when no address is known for a contract on a network."""

    def __init__(self, contract: str, network: str):
        self.contract = contract
        self.network = network
        super().__init__(
            f"No address configured for {contract} on {network}; "
            f"pass one explicitly or load deployed_addresses.json"
        )


class SignerRequiredError(ChronoFlowError):
    """Raised when a state-mutating call is made without a signing account."""

    def __init__(self, contract: str, function: str):
        self.contract = contract
        self.function = function
        super().__init__(
            f"{contract}.{function} mutates state and requires a wallet client "
            f"with a signing account"
        )


class TransactionFailedError(ChronoFlowError):
    """Raised when a mined transaction reverted."""

    def __init__(self, tx_hash: str, receipt: Optional[Dict[str, Any]] = None):
        self.tx_hash = tx_hash
        self.receipt = receipt
        super().__init__(f"Transaction {tx_hash} reverted on-chain")


class UnresolvedFutureError(ChronoFlowError):
    """Raised when a deployment future is dereferenced before its step ran."""

    def __init__(self, future_id: str):
        self.future_id = future_id
        super().__init__(f"Future {future_id} has not been resolved yet")


class ArtifactNotFoundError(ChronoFlowError):
    """Raised when a compiled contract artifact is missing or incomplete."""

    def __init__(self, contract_name: str, path: str, reason: str = "not found"):
        self.contract_name = contract_name
        self.path = path
        super().__init__(f"Artifact for {contract_name} {reason}: {path}")


class DeploymentError(ChronoFlowError):
    """Raised when a deployment step fails.

    The deployment is left partially applied; ``resolved`` lists the
    addresses created before the failure so the operator can tell what to
    redeploy.
    """

    def __init__(self, step_id: str, resolved: Dict[str, str], message: str):
        self.step_id = step_id
        self.resolved = dict(resolved)
        super().__init__(f"Deployment step {step_id} failed: {message}")
