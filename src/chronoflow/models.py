"""Records decoded from ChronoFlow contract reads."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence

from .contracts import ZERO_ADDRESS


@dataclass(frozen=True)
class StreamRecord:
    """A stream as stored by ChronoFlowCore.streams(uint256).

    Owned by the core contract; this is a read-only snapshot.
    """
    stream_id: int
    payer: str
    recipient: str
    deposit: int
    token: str
    start_time: int
    stop_time: int
    remaining_balance: int
    withdrawn_amount: int

    @classmethod
    def from_tuple(cls, stream_id: int, values: Sequence[Any]) -> "StreamRecord":
        """Decode the eight outputs of ``streams(id)`` in ABI order."""
        if len(values) != 8:
            raise ValueError(f"streams() returned {len(values)} values, expected 8")
        payer, recipient, deposit, token, start, stop, remaining, withdrawn = values
        return cls(
            stream_id=stream_id,
            payer=payer,
            recipient=recipient,
            deposit=int(deposit),
            token=token,
            start_time=int(start),
            stop_time=int(stop),
            remaining_balance=int(remaining),
            withdrawn_amount=int(withdrawn),
        )

    @property
    def exists(self) -> bool:
        # Unset mapping slots decode to the zero address
        return self.payer != ZERO_ADDRESS

    @property
    def duration(self) -> int:
        return self.stop_time - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stream_id": self.stream_id,
            "payer": self.payer,
            "recipient": self.recipient,
            "deposit": self.deposit,
            "token": self.token,
            "start_time": self.start_time,
            "stop_time": self.stop_time,
            "remaining_balance": self.remaining_balance,
            "withdrawn_amount": self.withdrawn_amount,
        }


@dataclass(frozen=True)
class ListingRecord:
    """A marketplace listing from ChronoFlowMarketplace.listings(uint256)."""
    token_id: int
    seller: str
    price: int

    @classmethod
    def from_tuple(cls, token_id: int, values: Sequence[Any]) -> "ListingRecord":
        if len(values) != 2:
            raise ValueError(f"listings() returned {len(values)} values, expected 2")
        seller, price = values
        return cls(token_id=token_id, seller=seller, price=int(price))

    @property
    def is_active(self) -> bool:
        return self.seller != ZERO_ADDRESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_id": self.token_id,
            "seller": self.seller,
            "price": self.price,
            "is_active": self.is_active,
        }
