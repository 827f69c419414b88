# -*- coding: utf-8 -*-
"""Unit tests for ExportService."""

from __future__ import annotations

import csv
import io
import json
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from memecoin_tracker.models.reaction import LeaderboardEntry
from memecoin_tracker.models.transaction import (
    ClassificationMethod,
    TransactionDirection,
    TransactionRecord,
    TransactionStatus,
)
from memecoin_tracker.services.export import CSV_HEADERS, EXPORT_VERSION, ExportService
from memecoin_tracker.services.holders import HolderSnapshotEngine
from memecoin_tracker.services.ledger import TransactionLedger
from memecoin_tracker.services.reactions import Leaderboard, NotificationLog
from memecoin_tracker.storage import keys

TRADER = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


@pytest.fixture
def ledger(shared_store, clock) -> TransactionLedger:
    return TransactionLedger(shared_store, keys.BACKEND_TRANSACTIONS, clock=clock)


@pytest.fixture
def leaderboard(shared_store) -> Leaderboard:
    return Leaderboard(shared_store)


@pytest.fixture
def holders(shared_store, token_mint, pool_address, clock) -> HolderSnapshotEngine:
    return HolderSnapshotEngine(
        SimpleNamespace(get_token_accounts_for_mint=AsyncMock(return_value=[])),
        shared_store,
        token_address=token_mint,
        pool_address=pool_address,
        token_program_id="TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
        clock=clock,
    )


@pytest.fixture
def exporter(ledger, shared_store, leaderboard, holders, clock) -> ExportService:
    return ExportService(ledger, NotificationLog(shared_store), leaderboard, holders, clock=clock)


async def _seed(ledger: TransactionLedger, now_utc) -> None:
    await ledger.insert(
        TransactionRecord.create(
            "sig-1",
            direction=TransactionDirection.BUY,
            amount=Decimal("2000"),
            counterparty=TRADER,
            status=TransactionStatus.SUCCESS,
            classification_method=ClassificationMethod.POOL_DELTA,
            block_time=1_770_984_000,
            processed_at=now_utc,
        )
    )
    await ledger.insert(
        TransactionRecord.create(
            "sig-2",
            direction=TransactionDirection.UNKNOWN,
            amount=None,
            counterparty="Unknown",
            status=TransactionStatus.FAILED,
            classification_method=ClassificationMethod.DEFAULT,
            processed_at=now_utc,
        )
    )


async def test_csv_has_bom_headers_and_quoted_rows(exporter: ExportService, ledger: TransactionLedger, now_utc) -> None:
    await _seed(ledger, now_utc)

    text = await exporter.transactions_csv()

    assert text.startswith("\ufeff")
    rows = list(csv.reader(io.StringIO(text.removeprefix("\ufeff"))))
    assert tuple(rows[0]) == CSV_HEADERS
    assert rows[1] == ["1", "sig-2", "Unknown", "Unknown", "Unknown", "Failed", "Unknown", "2026-02-13T12:00:00.000Z"]
    assert rows[2] == [
        "2",
        "sig-1",
        TRADER,
        "2000.00",
        "Buy",
        "Success",
        "2026-02-13T12:00:00.000Z",
        "2026-02-13T12:00:00.000Z",
    ]
    assert text.splitlines()[0] == "\ufeff" + ",".join(f'"{h}"' for h in CSV_HEADERS)
    assert not text.endswith("\n")


async def test_csv_of_empty_ledger_is_header_only(exporter: ExportService) -> None:
    text = await exporter.transactions_csv()

    assert text == "\ufeff" + ",".join(f'"{h}"' for h in CSV_HEADERS)


async def test_export_document_sections(
    exporter: ExportService, ledger: TransactionLedger, leaderboard: Leaderboard, holders, now_utc
) -> None:
    await _seed(ledger, now_utc)
    await leaderboard.upsert(LeaderboardEntry(address=TRADER, amount="1500000.00", timestamp=now_utc))
    await holders.snapshot()

    document = await exporter.export_document()

    assert document["version"] == EXPORT_VERSION
    assert document["exportTime"] == "2026-02-13T12:00:00.000Z"
    assert [t["signature"] for t in document["transactions"]] == ["sig-2", "sig-1"]
    assert document["notifications"] == []
    assert document["leaderboard"][0]["address"] == TRADER
    assert document["snapshots"][0]["type"] == "reward_end"


async def test_write_document_creates_parent_dirs(exporter: ExportService, tmp_path: Path) -> None:
    target = tmp_path / "exports" / "history.json"

    written = await exporter.write_document(target)

    assert written == target
    assert json.loads(target.read_text(encoding="utf-8"))["version"] == EXPORT_VERSION
