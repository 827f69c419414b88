# -*- coding: utf-8 -*-
"""Unit tests for the one-shot export and points commands."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal
from pathlib import Path

import pytest
from dependency_injector import providers

from memecoin_tracker import main as main_module
from memecoin_tracker.config import Settings
from memecoin_tracker.DI import Container
from memecoin_tracker.models.transaction import (
    ClassificationMethod,
    TransactionDirection,
    TransactionRecord,
    TransactionStatus,
)


@pytest.fixture
def container(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Container:
    settings = Settings(_env_file=None, storage={"local_path": str(tmp_path / "local_store.json")})
    container = Container()
    container.config.override(providers.Object(settings))
    monkeypatch.setattr(main_module, "Container", lambda: container)
    monkeypatch.setattr(main_module, "configure_logging", lambda: None)
    return container


def test_export_writes_json_and_csv(container: Container, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    record = TransactionRecord.create(
        "sig-export",
        direction=TransactionDirection.BUY,
        amount=Decimal("42"),
        counterparty="9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
        status=TransactionStatus.SUCCESS,
        classification_method=ClassificationMethod.POOL_DELTA,
    )
    asyncio.run(container.backend_ledger().insert(record))
    json_path = tmp_path / "out" / "export.json"
    csv_path = tmp_path / "out" / "transactions.csv"

    main_module.main(["export", str(json_path), "--csv", str(csv_path)])

    document = json.loads(json_path.read_text(encoding="utf-8"))
    assert [t["signature"] for t in document["transactions"]] == ["sig-export"]
    assert document["version"] == "2.0"
    assert csv_path.read_text(encoding="utf-8").startswith("\ufeff")
    assert "sig-export" in csv_path.read_text(encoding="utf-8")
    assert f"Export written to {json_path}" in capsys.readouterr().out


def test_points_prints_balance(container: Container, capsys: pytest.CaptureFixture[str]) -> None:
    main_module.main(["points", "wallet-1"])

    assert capsys.readouterr().out.strip() == "wallet-1: 0 points, 0 tokens"
