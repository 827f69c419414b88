# -*- coding: utf-8 -*-
"""Unit tests for HolderSnapshotEngine."""

from __future__ import annotations

import asyncio
import base64
import struct
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import base58
import pytest

from memecoin_tracker.events.detection import CountdownExpiredEvent
from memecoin_tracker.exceptions import RpcRequestError
from memecoin_tracker.services.holders import HolderSnapshotEngine
from memecoin_tracker.storage import InMemoryKeyValueStore, keys

TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


def _owner(seed: int) -> str:
    return base58.b58encode(bytes([seed]) * 32).decode("ascii")


def _entry(owner: str, amount: int) -> dict:
    data = bytes(32) + base58.b58decode(owner) + struct.pack("<Q", amount) + bytes(93)
    return {"pubkey": f"acct-{owner[:6]}", "account": {"data": [base64.b64encode(data).decode(), "base64"]}}


@pytest.fixture
def rpc() -> SimpleNamespace:
    return SimpleNamespace(get_token_accounts_for_mint=AsyncMock(return_value=[]))


@pytest.fixture
def engine(rpc, shared_store: InMemoryKeyValueStore, token_mint: str, pool_address: str, clock) -> HolderSnapshotEngine:
    return HolderSnapshotEngine(
        rpc,
        shared_store,
        token_address=token_mint,
        pool_address=pool_address,
        token_program_id=TOKEN_PROGRAM,
        top_n=2,
        max_snapshots=2,
        clock=clock,
    )


async def test_fetch_ranks_holders_excluding_pool(
    engine: HolderSnapshotEngine, rpc, pool_address: str, token_mint: str
) -> None:
    rpc.get_token_accounts_for_mint.return_value = [
        _entry(_owner(1), 500),
        _entry(pool_address, 1_000_000),
        _entry(_owner(2), 900),
        _entry(_owner(3), 100),
        {"pubkey": "broken", "account": {"data": ["", "base64"]}},
    ]

    holders = await engine.fetch_top_holders()

    assert [(h.address, h.rank) for h in holders] == [(_owner(2), 1), (_owner(1), 2)]
    rpc.get_token_accounts_for_mint.assert_awaited_once_with(token_mint, TOKEN_PROGRAM)
    assert engine.last_holders == holders


async def test_tick_publishes_holders_data(
    engine: HolderSnapshotEngine, rpc, shared_store: InMemoryKeyValueStore, token_mint: str
) -> None:
    rpc.get_token_accounts_for_mint.return_value = [_entry(_owner(1), 500)]

    await engine.tick()

    document = await shared_store.get(keys.HOLDERS_DATA)
    assert document["tokenAddress"] == token_mint
    assert document["holders"] == [{"address": _owner(1), "balance": 500, "rank": 1}]
    assert document["lastUpdate"] == "2026-02-13T12:00:00.000Z"


async def test_tick_failure_keeps_previous_document(
    engine: HolderSnapshotEngine, rpc, shared_store: InMemoryKeyValueStore
) -> None:
    rpc.get_token_accounts_for_mint.side_effect = RpcRequestError("timeout", url="https://rpc.example.com")

    await engine.tick()

    assert await shared_store.get(keys.HOLDERS_DATA) is None


async def test_snapshot_falls_back_to_last_known_holders(engine: HolderSnapshotEngine, rpc, token_mint: str) -> None:
    rpc.get_token_accounts_for_mint.return_value = [_entry(_owner(1), 500)]
    await engine.fetch_top_holders()
    rpc.get_token_accounts_for_mint.side_effect = RpcRequestError("timeout")

    snapshot = await engine.snapshot()

    assert [h.address for h in snapshot.holders] == [_owner(1)]
    assert snapshot.kind == "reward_end"
    assert snapshot.token_address == token_mint
    assert snapshot.snapshot_id.startswith("reward_snapshot_")


async def test_snapshot_history_is_capped(engine: HolderSnapshotEngine, clock) -> None:
    ids = []
    for _ in range(3):
        ids.append((await engine.snapshot()).snapshot_id)
        clock.advance(1)

    history = await engine.snapshots()

    assert [s.snapshot_id for s in history] == ids[1:]

    await engine.clear_snapshots()
    assert await engine.snapshots() == []


async def test_reward_expiry_takes_snapshot(engine: HolderSnapshotEngine, event_bus) -> None:
    engine.start(event_bus)

    await event_bus.dispatch(CountdownExpiredEvent(kind="launch", expired_at="2026-02-13T12:00:00.000Z"))
    assert await engine.snapshots() == []

    await event_bus.dispatch(CountdownExpiredEvent(kind="reward", expired_at="2026-02-13T12:00:00.000Z"))
    assert len(await engine.snapshots()) == 1

    engine.stop()
    await event_bus.dispatch(CountdownExpiredEvent(kind="reward", expired_at="2026-02-13T12:00:00.000Z"))
    assert len(await engine.snapshots()) == 1


def test_use_token_resets_last_holders(engine: HolderSnapshotEngine) -> None:
    engine.use_token("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")

    assert engine.token_address == "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
    assert engine.last_holders == []


async def test_concurrent_fetch_returns_last_holders_without_second_scan(
    engine: HolderSnapshotEngine, rpc
) -> None:
    rpc.get_token_accounts_for_mint.return_value = [_entry(_owner(1), 500)]
    previous = await engine.fetch_top_holders()
    release = asyncio.Event()

    async def _slow_scan(mint: str, program: str) -> list[dict]:
        await release.wait()
        return [_entry(_owner(2), 900)]

    rpc.get_token_accounts_for_mint.side_effect = _slow_scan
    first = asyncio.create_task(engine.fetch_top_holders())
    await asyncio.sleep(0)

    second = await engine.fetch_top_holders()
    release.set()
    fresh = await first

    assert second == previous
    assert [h.address for h in fresh] == [_owner(2)]
    assert rpc.get_token_accounts_for_mint.await_count == 2
    assert [h.address for h in await engine.fetch_top_holders()] == [_owner(2)]


async def test_unreadable_history_is_not_overwritten(
    rpc, flaky_store: Any, token_mint: str, pool_address: str, clock
) -> None:
    engine = HolderSnapshotEngine(
        rpc,
        flaky_store,
        token_address=token_mint,
        pool_address=pool_address,
        token_program_id=TOKEN_PROGRAM,
        max_snapshots=5,
        clock=clock,
    )
    kept = [(await engine.snapshot()).snapshot_id]
    clock.advance(1)
    kept.append((await engine.snapshot()).snapshot_id)
    clock.advance(1)
    flaky_store.writes.clear()
    flaky_store.fail_reads = 1

    unsaved = await engine.snapshot()

    assert unsaved.snapshot_id not in kept
    assert flaky_store.writes == []
    assert [s.snapshot_id for s in await engine.snapshots()] == kept
