"""Exceptions subpackage."""

from memecoin_tracker.exceptions.exceptions import (
    AccountParseError,
    ConfigValidationError,
    ExchangeRatioError,
    InsufficientPointsError,
    MemecoinTrackerError,
    PointsLedgerError,
    RpcApiError,
    RpcRequestError,
    StorageError,
    StorageQuotaExceededError,
    TransactionParseError,
)
from memecoin_tracker.exceptions.queue_exceptions import (
    QueueEmpty,
    QueueError,
    QueueFull,
    QueueShutdown,
)

__all__ = [
    "AccountParseError",
    "ConfigValidationError",
    "ExchangeRatioError",
    "InsufficientPointsError",
    "MemecoinTrackerError",
    "PointsLedgerError",
    "RpcApiError",
    "RpcRequestError",
    "StorageError",
    "StorageQuotaExceededError",
    "TransactionParseError",
    "QueueEmpty",
    "QueueError",
    "QueueFull",
    "QueueShutdown",
]
