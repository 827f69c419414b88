"""Holder ranking and snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from memecoin_tracker.utils.timeutils import epoch_millis, parse_iso, to_iso

REWARD_END_SNAPSHOT = "reward_end"


@dataclass(frozen=True, slots=True)
class HolderRecord:
    """Owner address with its raw token balance and dense 1-based rank."""

    address: str
    balance: int
    rank: int

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "balance": self.balance, "rank": self.rank}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> HolderRecord:
        return cls(
            address=str(raw["address"]),
            balance=int(raw.get("balance", 0)),
            rank=int(raw.get("rank", 0)),
        )


@dataclass(frozen=True, slots=True)
class HolderSnapshot:
    """Immutable copy of the holder ranking at a point in time."""

    holders: tuple[HolderRecord, ...]
    timestamp: datetime
    token_address: str
    snapshot_id: str
    kind: str

    @classmethod
    def create(
        cls,
        holders: list[HolderRecord],
        *,
        token_address: str,
        kind: str,
        now: datetime,
    ) -> HolderSnapshot:
        """Snapshot ids follow <kind-prefix>_snapshot_<epoch ms>, e.g. reward_snapshot_1700000000000."""
        prefix = kind.split("_", 1)[0] or "holders"
        return cls(
            holders=tuple(holders),
            timestamp=now,
            token_address=token_address,
            snapshot_id=f"{prefix}_snapshot_{epoch_millis(now)}",
            kind=kind,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "holders": [h.to_dict() for h in self.holders],
            "timestamp": to_iso(self.timestamp),
            "tokenAddress": self.token_address,
            "snapshotId": self.snapshot_id,
            "type": self.kind,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> HolderSnapshot:
        timestamp = parse_iso(raw.get("timestamp"))
        if timestamp is None:
            raise ValueError("snapshot without timestamp")
        return cls(
            holders=tuple(HolderRecord.from_dict(h) for h in raw.get("holders") or []),
            timestamp=timestamp,
            token_address=str(raw.get("tokenAddress", "")),
            snapshot_id=str(raw.get("snapshotId", "")),
            kind=str(raw.get("type", "")),
        )
