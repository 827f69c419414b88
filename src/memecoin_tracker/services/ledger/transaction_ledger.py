# -*- coding: utf-8 -*-
"""TransactionLedger: bounded, newest-first, signature-deduplicated list of records.

Stored as {transactions, totalCount, lastUpdate, lastUpload} under one key.
Insertion is an optimistic read-modify-write; a concurrent writer on another
process can overwrite it (last write wins). An unreadable document aborts the
insertion instead of being replaced.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from memecoin_tracker.exceptions import StorageError
from memecoin_tracker.models.transaction import (
    LedgerStats,
    TransactionDirection,
    TransactionRecord,
)
from memecoin_tracker.utils.timeutils import parse_iso, to_iso, utc_now

if TYPE_CHECKING:
    from memecoin_tracker.storage import KeyValueStore


class TransactionLedger:
    """One ledger document in one store."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        capacity: int = 100,
        *,
        clock: Callable[[], datetime] = utc_now,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._store = store
        self._key = key
        self._capacity = capacity
        self._clock = clock
        self._logger = get_logger(logger_name or f"{self.__class__.__name__}.{key}")

    @property
    def key(self) -> str:
        return self._key

    @property
    def capacity(self) -> int:
        return self._capacity

    async def _load_raw(self, *, strict: bool = False) -> tuple[list[dict[str, Any]], dict[str, Any]]:
        document = await self._store.get(self._key, strict=strict)
        if not isinstance(document, dict):
            return [], {}
        transactions = document.get("transactions")
        if not isinstance(transactions, list):
            return [], document
        return [t for t in transactions if isinstance(t, dict) and t.get("signature")], document

    async def contains(self, signature: str) -> bool:
        transactions, _ = await self._load_raw()
        return any(t.get("signature") == signature for t in transactions)

    async def insert(self, record: TransactionRecord) -> bool:
        """Prepend record unless its signature is already present; truncate to capacity.

        Returns True if the record was inserted; False for a duplicate or when
        the stored document could not be read.
        """
        try:
            transactions, _ = await self._load_raw(strict=True)
        except StorageError as e:
            self._logger.warning(
                "ledger_insert_aborted_unreadable",
                signature=record.signature,
                error_type=type(e.cause or e).__name__,
                error_message=str(e),
            )
            return False
        if any(t.get("signature") == record.signature for t in transactions):
            self._logger.debug("ledger_duplicate_skipped", signature=record.signature)
            return False
        transactions.insert(0, record.to_dict())
        evicted = len(transactions) - self._capacity
        del transactions[self._capacity :]
        now = to_iso(self._clock())
        await self._store.set(
            self._key,
            {
                "transactions": transactions,
                "totalCount": len(transactions),
                "lastUpdate": now,
                "lastUpload": now,
            },
        )
        self._logger.debug(
            "ledger_record_inserted",
            signature=record.signature,
            size=len(transactions),
            evicted=max(0, evicted),
        )
        return True

    async def list(self, limit: int | None = None) -> list[TransactionRecord]:
        """Records newest first (malformed entries are skipped)."""
        transactions, _ = await self._load_raw()
        records: list[TransactionRecord] = []
        for raw in transactions[:limit] if limit is not None else transactions:
            try:
                records.append(TransactionRecord.from_dict(raw))
            except (KeyError, ValueError) as e:
                self._logger.warning(
                    "ledger_record_unreadable",
                    signature=raw.get("signature"),
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
        return records

    async def stats(self) -> LedgerStats:
        """Counts per direction and buy/sell volume."""
        records = await self.list()
        _, document = await self._load_raw()
        counts = {direction: 0 for direction in TransactionDirection}
        volume = {TransactionDirection.BUY: Decimal(0), TransactionDirection.SELL: Decimal(0)}
        for record in records:
            counts[record.direction] += 1
            amount = record.amount_value
            if amount is not None and record.direction in volume:
                volume[record.direction] += amount
        return LedgerStats(
            total=len(records),
            buy_count=counts[TransactionDirection.BUY],
            sell_count=counts[TransactionDirection.SELL],
            transfer_count=counts[TransactionDirection.TRANSFER],
            unknown_count=counts[TransactionDirection.UNKNOWN],
            buy_volume=volume[TransactionDirection.BUY],
            sell_volume=volume[TransactionDirection.SELL],
            last_update=parse_iso(document.get("lastUpdate")),
        )

    async def clear(self) -> None:
        await self._store.remove(self._key)
        self._logger.info("ledger_cleared")
