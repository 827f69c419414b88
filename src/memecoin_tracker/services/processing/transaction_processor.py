"""Service that processes queued transactions: classify, record, react."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from memecoin_tracker.models.detection import NewTransactionRef
from memecoin_tracker.models.transaction import TransactionRecord
from memecoin_tracker.queue.messages import QueueMessage
from memecoin_tracker.utils.validation import mask_address

if TYPE_CHECKING:
    from memecoin_tracker.services.classification import TransactionClassifier
    from memecoin_tracker.services.ledger import TransactionLedger
    from memecoin_tracker.services.reactions import LargeTransactionReactionEngine, ReactionResult


@dataclass(frozen=True, slots=True)
class ProcessingOutcome:
    record: TransactionRecord
    frontend_inserted: bool
    backend_inserted: bool
    reaction: ReactionResult | None = None


class TransactionProcessorService:
    """Classifies each queued transaction, writes both ledgers and runs reactions.

    Reactions run only when the backend (shared) ledger accepted the record,
    so a transaction seen by several processes reacts once.
    """

    def __init__(
        self,
        classifier: TransactionClassifier,
        frontend_ledger: TransactionLedger,
        backend_ledger: TransactionLedger,
        reaction_engine: LargeTransactionReactionEngine | None = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            classifier: Classifier for the configured mint and pool.
            frontend_ledger: Ledger in the local store.
            backend_ledger: Ledger in the shared store (dedup gate for reactions).
            reaction_engine: Optional large-transaction reaction engine.
        """
        self._classifier = classifier
        self._frontend = frontend_ledger
        self._backend = backend_ledger
        self._reactions = reaction_engine
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def process(self, message: QueueMessage[NewTransactionRef]) -> ProcessingOutcome:
        ref = message.payload
        token_address = message.meta("token_address")
        classifier = self._classifier.with_token(token_address) if token_address else self._classifier
        record = classifier.classify(
            ref.transaction, signature=ref.signature, block_time=ref.block_time
        )

        frontend_inserted = await self._frontend.insert(record)
        backend_inserted = await self._backend.insert(record)

        reaction = None
        if backend_inserted and self._reactions is not None:
            reaction = await self._reactions.react(record)

        self._logger.info(
            "transaction_processed",
            signature=record.signature,
            direction=record.direction.value,
            amount=record.amount,
            status=record.status.value,
            classification_method=record.classification_method.value,
            counterparty_masked=mask_address(record.counterparty),
            frontend_inserted=frontend_inserted,
            backend_inserted=backend_inserted,
            large_transaction=reaction is not None,
        )
        return ProcessingOutcome(
            record=record,
            frontend_inserted=frontend_inserted,
            backend_inserted=backend_inserted,
            reaction=reaction,
        )
