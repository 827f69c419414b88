# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from memecoin_tracker.exceptions import StorageError
from memecoin_tracker.scheduling import ManualScheduler
from memecoin_tracker.storage import InMemoryKeyValueStore

TOKEN_MINT = "So11111111111111111111111111111111111111112"
POOL_ADDRESS = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TRADER = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
TRADER_ATA = "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T"
POOL_ATA = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"


class FakeClock:
    """Deterministic clock: call it for now, advance() to move it."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FakeEventBus:
    """Minimal bubus stand-in: records events and runs registered handlers."""

    def __init__(self) -> None:
        self.handlers: dict[str, list[Any]] = {}
        self.dispatched: list[Any] = []

    def on(self, event_type: type[Any], handler: Any) -> None:
        self.handlers.setdefault(event_type.__name__, []).append(handler)

    async def dispatch(self, event: Any) -> Any:
        self.dispatched.append(event)
        for handler in list(self.handlers.get(type(event).__name__, [])):
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        return event


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose reads fail while fail_reads is positive (one per read)."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.fail_reads = 0
        self.writes: list[str] = []

    async def _read(self, key: str) -> str | None:
        if self.fail_reads > 0:
            self.fail_reads -= 1
            raise StorageError(f"read of {key!r} failed", key=key, cause=ConnectionError("unreachable"))
        return await super()._read(key)

    async def _write(self, key: str, text: str) -> None:
        self.writes.append(key)
        await super()._write(key, text)


@pytest.fixture
def now_utc() -> datetime:
    """Stable UTC timestamp for deterministic assertions."""
    return datetime(2026, 2, 13, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def token_mint() -> str:
    return TOKEN_MINT


@pytest.fixture
def pool_address() -> str:
    return POOL_ADDRESS


@pytest.fixture
def trader() -> str:
    return TRADER


@pytest.fixture
def clock(now_utc: datetime) -> FakeClock:
    return FakeClock(now_utc)


@pytest.fixture
def shared_store() -> InMemoryKeyValueStore:
    """Fresh store standing in for the shared realtime database."""
    return InMemoryKeyValueStore(logger_name="shared")


@pytest.fixture
def local_store() -> InMemoryKeyValueStore:
    """Fresh store standing in for the per-process local store."""
    return InMemoryKeyValueStore(logger_name="local")


@pytest.fixture
def flaky_store() -> FlakyStore:
    """Shared store whose next reads can be made to fail (set fail_reads)."""
    return FlakyStore(logger_name="flaky")


@pytest.fixture
def event_bus() -> FakeEventBus:
    return FakeEventBus()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


def _balance(index: int, owner: str, amount: str, mint: str) -> dict[str, Any]:
    return {
        "accountIndex": index,
        "mint": mint,
        "owner": owner,
        "uiTokenAmount": {"uiAmountString": amount, "decimals": 6},
    }


@pytest.fixture
def tx_payload() -> Callable[..., dict[str, Any]]:
    """Build a jsonParsed getTransaction result.

    balances: (account_index, owner, pre or None, post or None) for the
    watched mint; None leaves the account out of that side.
    """

    def _build(
        signature: str = "sig-1",
        *,
        balances: list[tuple[int, str, str | None, str | None]] | None = None,
        account_keys: list[str] | None = None,
        mint: str = TOKEN_MINT,
        err: Any = None,
        block_time: int | None = 1_770_984_000,
        slot: int = 250_000_000,
    ) -> dict[str, Any]:
        keys = account_keys if account_keys is not None else [TRADER, TRADER_ATA, POOL_ATA]
        pre: list[dict[str, Any]] = []
        post: list[dict[str, Any]] = []
        for index, owner, pre_amount, post_amount in balances or []:
            if pre_amount is not None:
                pre.append(_balance(index, owner, pre_amount, mint))
            if post_amount is not None:
                post.append(_balance(index, owner, post_amount, mint))
        return {
            "slot": slot,
            "blockTime": block_time,
            "meta": {
                "err": err,
                "fee": 5000,
                "preTokenBalances": pre,
                "postTokenBalances": post,
            },
            "transaction": {
                "signatures": [signature],
                "message": {
                    "accountKeys": [
                        {"pubkey": key, "writable": True, "signer": i == 0, "source": "transaction"}
                        for i, key in enumerate(keys)
                    ],
                },
            },
        }

    return _build


@pytest.fixture
def swap_payload(tx_payload: Callable[..., dict[str, Any]]) -> Callable[..., dict[str, Any]]:
    """Two-party swap against the pool: pool pre -> post, trader mirrors the change."""

    def _build(signature: str, pool_pre: str, pool_post: str, trader_pre: str, trader_post: str) -> dict[str, Any]:
        return tx_payload(
            signature,
            balances=[
                (1, TRADER, trader_pre, trader_post),
                (2, POOL_ADDRESS, pool_pre, pool_post),
            ],
        )

    return _build
