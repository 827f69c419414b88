"""Queue consumers."""

from memecoin_tracker.consumers.transaction_consumer import TransactionConsumer

__all__ = ["TransactionConsumer"]
