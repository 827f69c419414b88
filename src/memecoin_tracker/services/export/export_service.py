# -*- coding: utf-8 -*-
"""ExportService: JSON and CSV exports of the stored history."""

from __future__ import annotations

import csv
import io
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from memecoin_tracker.models.transaction import TransactionRecord
from memecoin_tracker.utils.timeutils import to_iso, utc_now

if TYPE_CHECKING:
    from memecoin_tracker.services.holders import HolderSnapshotEngine
    from memecoin_tracker.services.ledger import TransactionLedger
    from memecoin_tracker.services.reactions import Leaderboard, NotificationLog

EXPORT_VERSION = "2.0"

CSV_HEADERS = ("No.", "Signature", "Trader", "Amount", "Type", "Status", "Time", "Processed Time")

_BOM = "\ufeff"


def _block_time(record: TransactionRecord) -> str:
    if record.block_time is None:
        return "Unknown"
    return to_iso(datetime.fromtimestamp(record.block_time, tz=UTC))


class ExportService:
    """Builds export documents from the backend ledger and the reaction history."""

    def __init__(
        self,
        ledger: TransactionLedger,
        notification_log: NotificationLog,
        leaderboard: Leaderboard,
        holder_engine: HolderSnapshotEngine,
        *,
        clock: Callable[[], datetime] = utc_now,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._ledger = ledger
        self._notifications = notification_log
        self._leaderboard = leaderboard
        self._holders = holder_engine
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def export_document(self) -> dict[str, Any]:
        """One JSON-ready document with transactions, notifications, leaderboard and snapshots."""
        transactions = await self._ledger.list()
        notifications = await self._notifications.list()
        leaderboard = await self._leaderboard.list()
        snapshots = await self._holders.snapshots()
        return {
            "exportTime": to_iso(self._clock()),
            "version": EXPORT_VERSION,
            "transactions": [t.to_dict() for t in transactions],
            "notifications": [n.to_dict() for n in notifications],
            "leaderboard": [e.to_dict() for e in leaderboard],
            "snapshots": [s.to_dict() for s in snapshots],
        }

    async def write_document(self, path: str | Path) -> Path:
        """Write export_document() as indented JSON to path (parents created)."""
        target = Path(path)
        document = await self.export_document()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        self._logger.info(
            "export_written",
            path=str(target),
            transactions=len(document["transactions"]),
            snapshots=len(document["snapshots"]),
        )
        return target

    async def transactions_csv(self) -> str:
        """Backend ledger as CSV: UTF-8 BOM, every cell quoted, newest first."""
        records = await self._ledger.list()
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for index, record in enumerate(records, start=1):
            writer.writerow(
                (
                    index,
                    record.signature,
                    record.counterparty,
                    record.amount if record.amount is not None else "Unknown",
                    record.direction.value,
                    record.status.value,
                    _block_time(record),
                    to_iso(record.processed_at),
                )
            )
        return _BOM + buffer.getvalue().rstrip("\n")
