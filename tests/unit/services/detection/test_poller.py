# -*- coding: utf-8 -*-
"""Unit tests for TransactionPoller."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from structlog.testing import capture_logs

from memecoin_tracker.clients.solana_rpc import SolanaRpcClient
from memecoin_tracker.config import Settings
from memecoin_tracker.exceptions import RpcApiError, RpcRequestError
from memecoin_tracker.models.detection import ConnectionStatus
from memecoin_tracker.services.detection import TransactionPoller
from memecoin_tracker.storage import InMemoryKeyValueStore, keys


@pytest.fixture
def poller(fake_rpc, local_store: InMemoryKeyValueStore, token_mint: str, clock) -> TransactionPoller:
    return TransactionPoller(fake_rpc, local_store, token_address=token_mint, signatures_limit=10, clock=clock)


async def test_first_poll_sets_baseline_without_backfill(
    poller: TransactionPoller, fake_rpc, tx_payload, local_store: InMemoryKeyValueStore
) -> None:
    fake_rpc.add("sig-1", tx_payload("sig-1"))
    fake_rpc.add("sig-2", tx_payload("sig-2"))

    assert await poller.poll() == []

    watermark = await local_store.get(keys.TRANSACTION_WATERMARK)
    assert watermark["signature"] == "sig-2"
    assert watermark["mode"] == "signatures"
    assert fake_rpc.fetched == []


async def test_new_transactions_are_returned_oldest_first(poller: TransactionPoller, fake_rpc, tx_payload) -> None:
    fake_rpc.add("sig-1", tx_payload("sig-1"))
    await poller.poll()
    fake_rpc.add("sig-2", tx_payload("sig-2"))
    fake_rpc.add("sig-3", tx_payload("sig-3"))

    refs = await poller.poll()

    assert [r.signature for r in refs] == ["sig-2", "sig-3"]
    assert refs[0].transaction["transaction"]["signatures"] == ["sig-2"]
    assert refs[0].block_time == 1_770_984_000


async def test_poll_is_idempotent_when_nothing_changed(poller: TransactionPoller, fake_rpc, tx_payload) -> None:
    fake_rpc.add("sig-1", tx_payload("sig-1"))
    await poller.poll()
    fake_rpc.add("sig-2", tx_payload("sig-2"))
    assert len(await poller.poll()) == 1

    assert await poller.poll() == []
    assert await poller.poll() == []


async def test_failed_fetch_holds_the_watermark(
    poller: TransactionPoller, fake_rpc, tx_payload, local_store: InMemoryKeyValueStore
) -> None:
    fake_rpc.add("sig-1", tx_payload("sig-1"))
    await poller.poll()
    fake_rpc.add("sig-2", tx_payload("sig-2"))
    fake_rpc.add("sig-3", tx_payload("sig-3"))
    fake_rpc.failing_signatures.add("sig-3")

    refs = await poller.poll()

    assert [r.signature for r in refs] == ["sig-2"]
    assert (await local_store.get(keys.TRANSACTION_WATERMARK))["signature"] == "sig-2"

    fake_rpc.failing_signatures.clear()
    assert [r.signature for r in await poller.poll()] == ["sig-3"]


async def test_unavailable_transaction_is_retried_later(poller: TransactionPoller, fake_rpc, tx_payload) -> None:
    fake_rpc.add("sig-1", tx_payload("sig-1"))
    await poller.poll()
    fake_rpc.add("sig-2", tx_payload("sig-2"))
    del fake_rpc.transactions["sig-2"]

    assert await poller.poll() == []

    fake_rpc.transactions["sig-2"] = tx_payload("sig-2")
    assert [r.signature for r in await poller.poll()] == ["sig-2"]


async def test_backfill_on_start_processes_first_page(
    fake_rpc, local_store: InMemoryKeyValueStore, token_mint: str, tx_payload, clock
) -> None:
    poller = TransactionPoller(
        fake_rpc, local_store, token_address=token_mint, backfill_on_start=True, clock=clock
    )
    fake_rpc.add("sig-1", tx_payload("sig-1"))
    fake_rpc.add("sig-2", tx_payload("sig-2"))

    assert [r.signature for r in await poller.poll()] == ["sig-1", "sig-2"]


async def test_listing_failure_propagates(poller: TransactionPoller, fake_rpc, rpc_timeout) -> None:
    fake_rpc.list_error = rpc_timeout

    with pytest.raises(RpcRequestError):
        await poller.poll()


async def test_watermark_for_another_token_is_ignored(
    poller: TransactionPoller, fake_rpc, tx_payload, local_store: InMemoryKeyValueStore
) -> None:
    fake_rpc.add("sig-1", tx_payload("sig-1"))
    await poller.poll()
    poller.use_token("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")
    fake_rpc.add("sig-2", tx_payload("sig-2"))

    assert await poller.poll() == []
    watermark = await local_store.get(keys.TRANSACTION_WATERMARK)
    assert watermark["address"] == "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
    assert watermark["signature"] == "sig-2"


async def test_connect_reports_version_and_status(poller: TransactionPoller, fake_rpc, rpc_timeout) -> None:
    result = await poller.connect("https://api.mainnet-beta.solana.com")

    assert result.success is True
    assert result.version == "1.18.4"
    assert poller.status is ConnectionStatus.CONNECTED
    assert fake_rpc.endpoint_url == "https://api.mainnet-beta.solana.com"

    fake_rpc.version_error = rpc_timeout
    failed = await poller.connect("https://rpc.example.com")

    assert failed.success is False
    assert failed.error == "Request timeout"
    assert poller.status is ConnectionStatus.DISCONNECTED


async def test_block_mode_walks_new_slots_for_the_mint(
    fake_rpc, local_store: InMemoryKeyValueStore, token_mint: str, tx_payload, clock
) -> None:
    poller = TransactionPoller(fake_rpc, local_store, token_address=token_mint, mode="block", clock=clock)
    fake_rpc.slot = 100
    assert await poller.poll() == []

    matching = tx_payload("sig-blk", balances=[(1, "owner", "0", "5")])
    other = tx_payload("sig-other", balances=[(1, "owner", "0", "5")], mint="OtherMint1111111111111111111111111111111111")
    fake_rpc.slot = 103
    fake_rpc.blocks = {101: {"blockTime": 1_770_984_100, "transactions": [other, matching]}, 102: None}
    fake_rpc.blocks[103] = RpcRequestError("slot unavailable")

    refs = await poller.poll()

    assert [(r.signature, r.slot, r.block_time) for r in refs] == [("sig-blk", 101, 1_770_984_100)]
    assert (await local_store.get(keys.TRANSACTION_WATERMARK))["slot"] == 102


async def test_backlog_larger_than_one_page_is_delivered_in_full(
    poller: TransactionPoller, fake_rpc, tx_payload, local_store: InMemoryKeyValueStore
) -> None:
    fake_rpc.add("sig-base", tx_payload("sig-base"))
    await poller.poll()
    for i in range(30):
        fake_rpc.add(f"s{i}", tx_payload(f"s{i}"))
    fake_rpc.list_calls.clear()

    refs = await poller.poll()

    assert [r.signature for r in refs] == [f"s{i}" for i in range(30)]
    assert fake_rpc.list_calls == [None, "s20", "s10", "s0"]
    assert (await local_store.get(keys.TRANSACTION_WATERMARK))["signature"] == "s29"


async def test_backlog_beyond_page_cap_keeps_newest_and_warns(
    fake_rpc, local_store: InMemoryKeyValueStore, token_mint: str, tx_payload, clock
) -> None:
    fake_rpc.add("sig-base", tx_payload("sig-base"))
    with capture_logs() as logs:
        poller = TransactionPoller(
            fake_rpc,
            local_store,
            token_address=token_mint,
            signatures_limit=10,
            max_signature_pages=2,
            clock=clock,
        )
        await poller.poll()
        for i in range(30):
            fake_rpc.add(f"s{i}", tx_payload(f"s{i}"))

        refs = await poller.poll()

    assert [r.signature for r in refs] == [f"s{i}" for i in range(10, 30)]
    (warning,) = [e for e in logs if e["event"] == "poll_backlog_truncated"]
    assert warning["log_level"] == "warning"
    assert warning["listed"] == 20
    assert warning["oldest_listed"] == "s10"
    assert await poller.poll() == []


def _node(state: dict[str, Any]) -> SimpleNamespace:
    """Fake HTTP client answering getSlot and getBlock like a JSON-RPC node."""

    async def _post(url: str, *, json: dict[str, Any], timeout_seconds: float | None = None) -> dict[str, Any]:
        reply: dict[str, Any] = {"jsonrpc": "2.0", "id": json["id"]}
        if json["method"] == "getSlot":
            reply["result"] = state["slot"]
            return reply
        outcome = state["blocks"][json["params"][0]]
        if isinstance(outcome, int):
            reply["error"] = {"code": outcome, "message": f"slot error {outcome}"}
        else:
            reply["result"] = outcome
        return reply

    return SimpleNamespace(post=AsyncMock(side_effect=_post))


@pytest.fixture
def node_state() -> dict[str, Any]:
    return {"slot": 100, "blocks": {}}


@pytest.fixture
def block_poller(node_state, local_store: InMemoryKeyValueStore, token_mint: str, clock) -> TransactionPoller:
    client = SolanaRpcClient(_node(node_state), Settings(_env_file=None))  # type: ignore[arg-type]
    return TransactionPoller(client, local_store, token_address=token_mint, mode="block", clock=clock)


async def test_skipped_slot_does_not_stall_block_mode(
    block_poller: TransactionPoller, node_state, local_store: InMemoryKeyValueStore, tx_payload
) -> None:
    assert await block_poller.poll() == []
    matching = tx_payload("sig-103", balances=[(1, "owner", "0", "5")])
    node_state["slot"] = 105
    node_state["blocks"] = {
        101: -32007,
        102: {"blockTime": 1_770_984_100, "transactions": []},
        103: {"blockTime": 1_770_984_101, "transactions": [matching]},
        104: -32009,
        105: {"blockTime": 1_770_984_102, "transactions": []},
    }

    refs = await block_poller.poll()

    assert [(r.signature, r.slot) for r in refs] == [("sig-103", 103)]
    assert (await local_store.get(keys.TRANSACTION_WATERMARK))["slot"] == 105


async def test_block_not_yet_available_holds_the_watermark(
    block_poller: TransactionPoller, node_state, local_store: InMemoryKeyValueStore
) -> None:
    await block_poller.poll()
    node_state["slot"] = 103
    node_state["blocks"] = {
        101: {"blockTime": 1_770_984_100, "transactions": []},
        102: -32004,
        103: {"blockTime": 1_770_984_102, "transactions": []},
    }

    assert await block_poller.poll() == []
    assert (await local_store.get(keys.TRANSACTION_WATERMARK))["slot"] == 101

    node_state["blocks"][102] = {"blockTime": 1_770_984_101, "transactions": []}
    await block_poller.poll()
    assert (await local_store.get(keys.TRANSACTION_WATERMARK))["slot"] == 103


async def test_get_block_maps_only_skipped_slot_codes_to_none(node_state) -> None:
    client = SolanaRpcClient(_node(node_state), Settings(_env_file=None))  # type: ignore[arg-type]
    node_state["blocks"] = {7: -32007, 9: -32009, 4: -32004}

    assert await client.get_block(7) is None
    assert await client.get_block(9) is None
    with pytest.raises(RpcApiError) as exc:
        await client.get_block(4)
    assert exc.value.code == -32004
