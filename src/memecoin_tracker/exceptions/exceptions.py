"""Custom exceptions for RPC access, parsing, storage and validation."""

from __future__ import annotations


class MemecoinTrackerError(Exception):
    """Base exception for tracker errors."""

    pass


class ConfigValidationError(MemecoinTrackerError):
    """Raised when admin input or persisted configuration fails validation."""

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]


class RpcRequestError(MemecoinTrackerError):
    """Raised when an HTTP request (RPC node, realtime database, cloud functions) fails after retries."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class RpcApiError(MemecoinTrackerError):
    """Raised when a JSON-RPC response carries an error object."""

    def __init__(self, message: str, *, method: str, code: int | None = None) -> None:
        super().__init__(message)
        self.method = method
        self.code = code


class TransactionParseError(MemecoinTrackerError):
    """Raised when a fetched transaction does not have the expected shape."""

    pass


class AccountParseError(MemecoinTrackerError):
    """Raised when raw token-account bytes cannot be decoded."""

    pass


class StorageError(MemecoinTrackerError):
    """Raised by store backends; adapters catch it and degrade to a no-op."""

    def __init__(self, message: str, *, key: str | None = None, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.key = key
        self.cause = cause


class StorageQuotaExceededError(StorageError):
    """Raised when a write would exceed the configured local quota."""

    pass


class PointsLedgerError(MemecoinTrackerError):
    """Raised when the external points ledger rejects or fails an operation."""

    pass


class InsufficientPointsError(PointsLedgerError):
    """Raised when an exchange requests more points than the wallet holds."""

    def __init__(self, available: int, requested: int) -> None:
        super().__init__(f"Insufficient points. Available: {available}, Requested: {requested}")
        self.available = available
        self.requested = requested


class ExchangeRatioError(PointsLedgerError):
    """Raised when tokens do not match points times the exchange ratio."""

    pass
