# -*- coding: utf-8 -*-
"""Unit tests for TransactionProcessorService."""

from __future__ import annotations

import pytest

from memecoin_tracker.models.countdown import CountdownKind
from memecoin_tracker.models.detection import NewTransactionRef
from memecoin_tracker.models.transaction import TransactionDirection
from memecoin_tracker.queue import QueueMessage
from memecoin_tracker.services.classification import TransactionClassifier
from memecoin_tracker.services.countdown import CountdownEngine
from memecoin_tracker.services.ledger import TransactionLedger
from memecoin_tracker.services.processing import TransactionProcessorService
from memecoin_tracker.services.reactions import (
    LargeTransactionReactionEngine,
    Leaderboard,
    NotificationLog,
)
from memecoin_tracker.storage import keys


def _message(payload: dict, signature: str, token_address: str | None = None) -> QueueMessage[NewTransactionRef]:
    ref = NewTransactionRef(signature=signature, slot=1, block_time=1_770_984_000, transaction=payload)
    metadata = {"token_address": token_address} if token_address else None
    return QueueMessage[NewTransactionRef].create(payload=ref, metadata=metadata)


@pytest.fixture
def frontend_ledger(local_store, clock) -> TransactionLedger:
    return TransactionLedger(local_store, keys.FRONTEND_TRANSACTIONS, clock=clock)


@pytest.fixture
def backend_ledger(shared_store, clock) -> TransactionLedger:
    return TransactionLedger(shared_store, keys.BACKEND_TRANSACTIONS, clock=clock)


@pytest.fixture
def notification_log(shared_store) -> NotificationLog:
    return NotificationLog(shared_store)


@pytest.fixture
def processor(
    token_mint, pool_address, frontend_ledger, backend_ledger, notification_log, shared_store, local_store, clock
) -> TransactionProcessorService:
    countdown = CountdownEngine(
        CountdownKind.LAUNCH,
        shared_store,
        local_store,
        default_seconds=60,
        ceiling_seconds=600,
        clock=clock,
    )
    reactions = LargeTransactionReactionEngine(
        notification_log, Leaderboard(shared_store), countdown, clock=clock
    )
    return TransactionProcessorService(
        TransactionClassifier(token_mint, pool_address),
        frontend_ledger,
        backend_ledger,
        reactions,
    )


async def test_small_buy_is_recorded_in_both_ledgers(
    processor: TransactionProcessorService, swap_payload, frontend_ledger, backend_ledger
) -> None:
    outcome = await processor.process(_message(swap_payload("sig-1", "1000000", "998000", "0", "2000"), "sig-1"))

    assert outcome.record.direction is TransactionDirection.BUY
    assert outcome.frontend_inserted and outcome.backend_inserted
    assert outcome.reaction is None
    assert [r.signature for r in await frontend_ledger.list()] == ["sig-1"]
    assert [r.signature for r in await backend_ledger.list()] == ["sig-1"]


async def test_large_transaction_reacts_once(
    processor: TransactionProcessorService, swap_payload, notification_log: NotificationLog
) -> None:
    message = _message(swap_payload("sig-whale", "3000000", "1500000", "0", "1500000"), "sig-whale")

    first = await processor.process(message)
    second = await processor.process(message)

    assert first.reaction is not None and first.reaction.notified
    assert second.backend_inserted is False
    assert second.reaction is None
    assert len(await notification_log.list()) == 1


async def test_record_already_in_shared_ledger_does_not_react(
    processor: TransactionProcessorService,
    swap_payload,
    backend_ledger: TransactionLedger,
    frontend_ledger: TransactionLedger,
    notification_log: NotificationLog,
    token_mint,
    pool_address,
) -> None:
    payload = swap_payload("sig-whale", "3000000", "1500000", "0", "1500000")
    record = TransactionClassifier(token_mint, pool_address).classify(payload, signature="sig-whale")
    await backend_ledger.insert(record)

    outcome = await processor.process(_message(payload, "sig-whale"))

    assert outcome.frontend_inserted is True
    assert outcome.backend_inserted is False
    assert outcome.reaction is None
    assert await notification_log.list() == []


async def test_message_token_overrides_classifier_mint(processor: TransactionProcessorService, swap_payload) -> None:
    payload = swap_payload("sig-1", "1000000", "998000", "0", "2000")

    outcome = await processor.process(
        _message(payload, "sig-1", token_address="TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")
    )

    assert outcome.record.direction is TransactionDirection.UNKNOWN


async def test_unreadable_shared_ledger_does_not_react_again(
    token_mint, pool_address, frontend_ledger, flaky_store, local_store, swap_payload, clock
) -> None:
    backend = TransactionLedger(flaky_store, keys.BACKEND_TRANSACTIONS, clock=clock)
    log = NotificationLog(flaky_store)
    countdown = CountdownEngine(
        CountdownKind.LAUNCH, flaky_store, local_store, default_seconds=60, ceiling_seconds=600, clock=clock
    )
    service = TransactionProcessorService(
        TransactionClassifier(token_mint, pool_address),
        frontend_ledger,
        backend,
        LargeTransactionReactionEngine(log, Leaderboard(flaky_store), countdown, clock=clock),
    )
    message = _message(swap_payload("sig-whale", "3000000", "1500000", "0", "1500000"), "sig-whale")
    first = await service.process(message)
    flaky_store.fail_reads = 1

    second = await service.process(message)

    assert first.reaction is not None
    assert second.backend_inserted is False
    assert second.reaction is None
    assert len(await log.list()) == 1
    assert len(await backend.list()) == 1
