# -*- coding: utf-8 -*-
"""Unit tests for AdminService."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from memecoin_tracker.config import Settings
from memecoin_tracker.exceptions import ConfigValidationError, RpcRequestError
from memecoin_tracker.models.countdown import CountdownKind
from memecoin_tracker.models.reaction import LeaderboardEntry, NotificationRecord
from memecoin_tracker.models.transaction import (
    ClassificationMethod,
    TransactionDirection,
    TransactionRecord,
    TransactionStatus,
)
from memecoin_tracker.services.admin import AdminService
from memecoin_tracker.services.countdown import CountdownEngine
from memecoin_tracker.services.holders import HolderSnapshotEngine
from memecoin_tracker.services.ledger import TransactionLedger
from memecoin_tracker.services.reactions import Leaderboard, NotificationLog
from memecoin_tracker.storage import InMemoryKeyValueStore, keys

RPC_URL = "https://rpc.example.com"


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def http() -> SimpleNamespace:
    return SimpleNamespace(post=AsyncMock(return_value={"jsonrpc": "2.0", "id": 1, "result": {"solana-core": "1.18.4"}}))


@pytest.fixture
def ledgers(shared_store, local_store, clock) -> tuple[TransactionLedger, TransactionLedger]:
    return (
        TransactionLedger(local_store, keys.FRONTEND_TRANSACTIONS, clock=clock),
        TransactionLedger(shared_store, keys.BACKEND_TRANSACTIONS, clock=clock),
    )


@pytest.fixture
def admin(settings, http, shared_store, local_store, ledgers, token_mint, pool_address, clock) -> AdminService:
    countdowns = {
        kind: CountdownEngine(
            kind, shared_store, local_store, default_seconds=300, ceiling_seconds=600, clock=clock
        )
        for kind in CountdownKind
    }
    holders = HolderSnapshotEngine(
        SimpleNamespace(get_token_accounts_for_mint=AsyncMock(return_value=[])),
        shared_store,
        token_address=token_mint,
        pool_address=pool_address,
        token_program_id="TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
        clock=clock,
    )
    return AdminService(
        settings,
        http,
        shared_store,
        local_store,
        countdowns=countdowns,
        frontend_ledger=ledgers[0],
        backend_ledger=ledgers[1],
        notification_log=NotificationLog(shared_store),
        leaderboard=Leaderboard(shared_store),
        holder_engine=holders,
        clock=clock,
    )


def _record(signature: str) -> TransactionRecord:
    return TransactionRecord.create(
        signature,
        direction=TransactionDirection.BUY,
        amount=Decimal("10"),
        counterparty="9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
        status=TransactionStatus.SUCCESS,
        classification_method=ClassificationMethod.POOL_DELTA,
    )


@pytest.mark.parametrize(
    ("address", "valid"),
    [
        ("So11111111111111111111111111111111111111112", True),
        ("  So11111111111111111111111111111111111111112  ", True),
        ("1111111111111111111111111111111", False),
        ("0OIl0OIl0OIl0OIl0OIl0OIl0OIl0OIl", False),
        ("", False),
    ],
)
def test_validate_token_address(address: str, valid: bool) -> None:
    assert AdminService.validate_token_address(address) is valid


async def test_rpc_connection_rejects_invalid_url_without_request(admin: AdminService, http) -> None:
    result = await admin.test_rpc_connection("ftp://x")

    assert result.success is False
    assert result.error == "Invalid RPC URL"
    http.post.assert_not_called()


async def test_rpc_connection_reports_version(admin: AdminService, http) -> None:
    result = await admin.test_rpc_connection(f"  {RPC_URL}  ")

    assert result.success is True
    assert result.version == "1.18.4"
    assert http.post.await_args.args[0] == RPC_URL
    assert http.post.await_args.kwargs["json"]["method"] == "getVersion"


async def test_rpc_connection_failure(admin: AdminService, http) -> None:
    http.post.side_effect = RpcRequestError("Request timeout", url=RPC_URL)

    result = await admin.test_rpc_connection(RPC_URL)

    assert result.success is False
    assert result.error == "Request timeout"


async def test_start_detection_writes_both_stores(
    admin: AdminService, shared_store: InMemoryKeyValueStore, local_store: InMemoryKeyValueStore, token_mint: str
) -> None:
    control = await admin.start_detection(RPC_URL, token_mint)

    assert control.is_running
    for store in (shared_store, local_store):
        document = await store.get(keys.DETECTION_CONTROL)
        assert document["isRunning"] is True
        assert document["rpcUrl"] == RPC_URL
        assert document["tokenAddress"] == token_mint
        assert document["startTime"] == "2026-02-13T12:00:00.000Z"


async def test_start_detection_rejects_invalid_input(admin: AdminService, shared_store: InMemoryKeyValueStore) -> None:
    with pytest.raises(ConfigValidationError) as exc_info:
        await admin.start_detection("not a url", "short")

    assert len(exc_info.value.errors) == 2
    assert await shared_store.get(keys.DETECTION_CONTROL) is None


async def test_stop_detection_keeps_endpoint(admin: AdminService, token_mint: str, clock) -> None:
    await admin.start_detection(RPC_URL, token_mint)
    clock.advance(60)

    control = await admin.stop_detection()

    assert control.is_running is False
    assert control.rpc_url == RPC_URL
    assert control.start_time == clock.now - timedelta(seconds=60)
    status = await admin.detection_status()
    assert status.is_running is False


async def test_stop_detection_without_control_uses_settings(admin: AdminService, settings: Settings) -> None:
    control = await admin.stop_detection()

    assert control.is_running is False
    assert control.rpc_url == settings.rpc.endpoint_url
    assert control.token_address == settings.token.token_address


async def test_reset_countdown(admin: AdminService, shared_store: InMemoryKeyValueStore, now_utc: datetime) -> None:
    state = await admin.reset_countdown(CountdownKind.REWARD, 10, 30)

    assert state.target == now_utc + timedelta(minutes=10, seconds=30)
    assert state.reset_by == "admin"
    assert (await shared_store.get(keys.REWARD_COUNTDOWN))["resetBy"] == "admin"
    assert await shared_store.get(keys.COUNTDOWN) is None


@pytest.mark.parametrize(("minutes", "seconds"), [(0, 0), (1441, 0), (5, 60), (5, -1)])
async def test_reset_countdown_rejects_out_of_range(admin: AdminService, minutes: int, seconds: int) -> None:
    with pytest.raises(ConfigValidationError):
        await admin.reset_countdown(CountdownKind.LAUNCH, minutes, seconds)


async def test_save_config_persists_migrated_document(
    admin: AdminService, shared_store: InMemoryKeyValueStore, local_store: InMemoryKeyValueStore
) -> None:
    config = await admin.save_config({"countdown": {"minutes": 15}, "rpc": {"url": RPC_URL}})

    assert config.countdown.minutes == 15
    document = await shared_store.get(keys.ADMIN_CONFIG)
    assert document == await local_store.get(keys.ADMIN_CONFIG)
    assert document["system"]["lastUpdate"] == "2026-02-13T12:00:00.000Z"
    assert document["version"] == 2


async def test_save_config_rejects_invalid_document(admin: AdminService, shared_store: InMemoryKeyValueStore) -> None:
    with pytest.raises(ConfigValidationError) as exc_info:
        await admin.save_config({"countdown": {"minutes": 5000}})

    assert any(e.startswith("countdown.minutes") for e in exc_info.value.errors)
    assert await shared_store.get(keys.ADMIN_CONFIG) is None


async def test_load_config_prefers_shared_then_local(
    admin: AdminService, shared_store: InMemoryKeyValueStore, local_store: InMemoryKeyValueStore
) -> None:
    assert (await admin.load_config()).countdown.minutes == 5

    await local_store.set(keys.ADMIN_CONFIG, {"countdown": {"minutes": 7}})
    assert (await admin.load_config()).countdown.minutes == 7

    await shared_store.set(keys.ADMIN_CONFIG, {"countdown": {"minutes": 9}})
    assert (await admin.load_config()).countdown.minutes == 9


async def test_load_config_falls_back_to_defaults_when_invalid(
    admin: AdminService, shared_store: InMemoryKeyValueStore
) -> None:
    await shared_store.set(keys.ADMIN_CONFIG, {"countdown": {"minutes": -3}})

    config = await admin.load_config()

    assert config.countdown.minutes == 5


async def test_detection_status_counts_both_ledgers(admin: AdminService, ledgers) -> None:
    frontend, backend = ledgers
    await frontend.insert(_record("sig-1"))
    await frontend.insert(_record("sig-2"))
    await backend.insert(_record("sig-1"))

    status = await admin.detection_status()

    assert status.frontend_count == 2
    assert status.backend_count == 1
    assert status.last_update is not None
    assert status.control is None


async def test_clear_operations(
    admin: AdminService, ledgers, shared_store: InMemoryKeyValueStore, now_utc: datetime
) -> None:
    frontend, backend = ledgers
    await frontend.insert(_record("sig-1"))
    await backend.insert(_record("sig-1"))
    await NotificationLog(shared_store).append(
        NotificationRecord(
            timestamp=now_utc,
            transaction_ref="sig-1",
            message="Large buy of 1500000.00 tokens detected",
            amount="1500000.00",
            direction="Buy",
            address="9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
        )
    )
    await Leaderboard(shared_store).upsert(LeaderboardEntry(address="addr", amount="1.00", timestamp=now_utc))
    await shared_store.set(keys.HOLDERS_SNAPSHOTS, [{"timestamp": "2026-02-13T12:00:00.000Z"}])

    stats = await admin.notification_stats()
    assert (stats.today, stats.total) == (1, 1)

    await admin.clear_transactions()
    await admin.clear_notifications()
    await admin.clear_success_addresses()
    await admin.clear_snapshots()

    assert await frontend.list() == [] and await backend.list() == []
    for key in (keys.LARGE_TRANSACTION_NOTIFICATIONS, keys.SUCCESS_ADDRESSES, keys.HOLDERS_SNAPSHOTS):
        assert await shared_store.get(key) is None
    assert (await admin.notification_stats()).total == 0
