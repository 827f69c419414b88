# -*- coding: utf-8 -*-
"""Fixtures for poller and tracker tests."""

from __future__ import annotations

from typing import Any

import pytest

from memecoin_tracker.exceptions import RpcApiError, RpcRequestError


class FakeSolanaRpc:
    """In-memory stand-in for SolanaRpcClient.

    signatures is newest first, as the node returns them.
    """

    def __init__(self) -> None:
        self.endpoint_url = "https://rpc.example.com"
        self.version_error: Exception | None = None
        self.signatures: list[dict[str, Any]] = []
        self.transactions: dict[str, dict[str, Any]] = {}
        self.failing_signatures: set[str] = set()
        self.list_error: Exception | None = None
        self.slot = 0
        self.blocks: dict[int, dict[str, Any] | None] = {}
        self.fetched: list[str] = []
        self.list_calls: list[str | None] = []

    def use_endpoint(self, endpoint_url: str) -> None:
        self.endpoint_url = endpoint_url

    async def get_version(self) -> dict[str, Any]:
        if self.version_error is not None:
            raise self.version_error
        return {"solana-core": "1.18.4"}

    async def get_signatures_for_address(
        self, address: str, *, limit: int | None = None, until: str | None = None, before: str | None = None
    ) -> list[dict[str, Any]]:
        if self.list_error is not None:
            raise self.list_error
        self.list_calls.append(before)
        entries = list(self.signatures)
        signatures = [e["signature"] for e in entries]
        if before in signatures:
            start = signatures.index(before) + 1
            entries, signatures = entries[start:], signatures[start:]
        if until in signatures:
            entries = entries[: signatures.index(until)]
        return entries[:limit] if limit else entries

    async def get_transaction(self, signature: str) -> dict[str, Any] | None:
        self.fetched.append(signature)
        if signature in self.failing_signatures:
            raise RpcApiError("RPC error: node is behind", method="getTransaction", code=-32005)
        return self.transactions.get(signature)

    async def get_slot(self) -> int:
        return self.slot

    async def get_block(self, slot: int) -> dict[str, Any] | None:
        block = self.blocks.get(slot)
        if isinstance(block, Exception):
            raise block
        return block

    def add(self, signature: str, payload: dict[str, Any], slot: int = 1) -> None:
        """Publish a new transaction (becomes the newest signature)."""
        self.signatures.insert(0, {"signature": signature, "slot": slot, "blockTime": 1_770_984_000, "err": None})
        self.transactions[signature] = payload


@pytest.fixture
def fake_rpc() -> FakeSolanaRpc:
    return FakeSolanaRpc()


@pytest.fixture
def rpc_timeout() -> RpcRequestError:
    return RpcRequestError("Request timeout", url="https://rpc.example.com")
