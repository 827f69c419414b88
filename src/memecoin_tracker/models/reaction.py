"""Records written by the large-transaction reaction engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from memecoin_tracker.utils.timeutils import parse_iso, to_iso, utc_now


@dataclass(frozen=True, slots=True)
class NotificationRecord:
    """One large-transaction notification (newest-first log, capacity 50)."""

    timestamp: datetime
    transaction_ref: str
    message: str
    amount: str
    direction: str
    address: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": to_iso(self.timestamp),
            "transactionRef": self.transaction_ref,
            "message": self.message,
            "amount": self.amount,
            "direction": self.direction,
            "address": self.address,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> NotificationRecord:
        return cls(
            timestamp=parse_iso(raw.get("timestamp")) or utc_now(),
            transaction_ref=str(raw.get("transactionRef", "")),
            message=str(raw.get("message", "")),
            amount=str(raw.get("amount", "")),
            direction=str(raw.get("direction", "")),
            address=str(raw.get("address", "")),
        )


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    """Success-address entry; keyed by address, most recent first."""

    address: str
    amount: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "amount": self.amount,
            "timestamp": to_iso(self.timestamp),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LeaderboardEntry:
        return cls(
            address=str(raw["address"]),
            amount=str(raw.get("amount", "")),
            timestamp=parse_iso(raw.get("timestamp")) or utc_now(),
        )
