"""Transaction processing services."""

from memecoin_tracker.services.processing.transaction_processor import (
    ProcessingOutcome,
    TransactionProcessorService,
)

__all__ = ["ProcessingOutcome", "TransactionProcessorService"]
