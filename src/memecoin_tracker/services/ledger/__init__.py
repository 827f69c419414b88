"""Transaction ledgers."""

from memecoin_tracker.services.ledger.transaction_ledger import TransactionLedger

__all__ = ["TransactionLedger"]
