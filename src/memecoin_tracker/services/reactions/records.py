"""Bounded notification log and success-address leaderboard kept in the shared store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from memecoin_tracker.exceptions import StorageError
from memecoin_tracker.models.reaction import LeaderboardEntry, NotificationRecord
from memecoin_tracker.storage import keys

if TYPE_CHECKING:
    from memecoin_tracker.storage import KeyValueStore


@dataclass(frozen=True, slots=True)
class NotificationStats:
    today: int
    total: int
    last_time: datetime | None


def _as_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


class NotificationLog:
    """Newest-first list of large-transaction notifications (capacity 50)."""

    def __init__(
        self,
        store: KeyValueStore,
        capacity: int = 50,
        *,
        key: str = keys.LARGE_TRANSACTION_NOTIFICATIONS,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._store = store
        self._capacity = capacity
        self._key = key
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def append(self, record: NotificationRecord) -> bool:
        """Prepend record; False (nothing written) when the stored list is unreadable."""
        try:
            entries = _as_list(await self._store.get(self._key, strict=True))
        except StorageError as e:
            self._logger.warning("notification_append_aborted_unreadable", error_message=str(e))
            return False
        entries.insert(0, record.to_dict())
        await self._store.set(self._key, entries[: self._capacity])
        return True

    async def list(self, limit: int | None = None) -> list[NotificationRecord]:
        entries = _as_list(await self._store.get(self._key))
        return [NotificationRecord.from_dict(e) for e in entries[:limit]]

    async def stats(self, now: datetime) -> NotificationStats:
        """Today's count (same UTC date as now), total and newest timestamp."""
        records = await self.list()
        return NotificationStats(
            today=sum(1 for r in records if r.timestamp.date() == now.date()),
            total=len(records),
            last_time=records[0].timestamp if records else None,
        )

    async def clear(self) -> None:
        await self._store.remove(self._key)
        self._logger.info("notifications_cleared")


class Leaderboard:
    """Success addresses keyed by address, most recent first (capacity 5)."""

    def __init__(
        self,
        store: KeyValueStore,
        capacity: int = 5,
        *,
        key: str = keys.SUCCESS_ADDRESSES,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._store = store
        self._capacity = capacity
        self._key = key
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def upsert(self, entry: LeaderboardEntry) -> bool:
        """Drop any entry for the same address, put entry first, evict from the tail.

        Returns False without writing when the stored list is unreadable.
        """
        try:
            current = _as_list(await self._store.get(self._key, strict=True))
        except StorageError as e:
            self._logger.warning("leaderboard_upsert_aborted_unreadable", error_message=str(e))
            return False
        entries = [e for e in current if e.get("address") != entry.address]
        entries.insert(0, entry.to_dict())
        await self._store.set(self._key, entries[: self._capacity])
        return True

    async def list(self) -> list[LeaderboardEntry]:
        entries = _as_list(await self._store.get(self._key))
        return [LeaderboardEntry.from_dict(e) for e in entries if e.get("address")]

    async def clear(self) -> None:
        await self._store.remove(self._key)
        self._logger.info("leaderboard_cleared")
