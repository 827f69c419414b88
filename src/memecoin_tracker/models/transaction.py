"""TransactionRecord: one classified on-chain transaction.

Identity is signature. Records are immutable once created by the classifier
and stored newest-first in the ledgers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from memecoin_tracker.utils.timeutils import parse_iso, to_iso, utc_now
from memecoin_tracker.utils.validation import display_address


class TransactionDirection(str, Enum):
    BUY = "Buy"
    SELL = "Sell"
    TRANSFER = "Transfer"
    UNKNOWN = "Unknown"


class TransactionStatus(str, Enum):
    SUCCESS = "Success"
    FAILED = "Failed"


class ClassificationMethod(str, Enum):
    """Which classifier strategy produced the direction.

    Only POOL_DELTA is authoritative; the others are heuristics and are
    surfaced as such.
    """

    POOL_DELTA = "pool_delta"
    MINT_DELTA = "mint_delta"
    ACCOUNT_COUNT = "account_count"
    DEFAULT = "default"

    @property
    def is_heuristic(self) -> bool:
        return self is not ClassificationMethod.POOL_DELTA


def format_amount(value: Decimal | None) -> str | None:
    """Absolute value rendered with exactly two decimals; None stays None."""
    if value is None:
        return None
    return f"{abs(value):.2f}"


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """Classified transaction as stored in the ledgers."""

    signature: str
    direction: TransactionDirection
    amount: str | None
    """Two-decimal string, or None when no balance delta was resolvable."""
    counterparty: str
    counterparty_display: str
    status: TransactionStatus
    classification_method: ClassificationMethod
    block_time: int | None = None
    """Unix seconds as reported by the RPC node."""
    processed_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        signature: str,
        *,
        direction: TransactionDirection,
        amount: Decimal | None,
        counterparty: str,
        status: TransactionStatus,
        classification_method: ClassificationMethod,
        block_time: int | None = None,
        processed_at: datetime | None = None,
    ) -> TransactionRecord:
        """Create a record, formatting the amount and the display address."""
        signature = signature.strip()
        if not signature:
            raise ValueError("signature must be non-empty")
        return cls(
            signature=signature,
            direction=direction,
            amount=format_amount(amount),
            counterparty=counterparty,
            counterparty_display=display_address(counterparty),
            status=status,
            classification_method=classification_method,
            block_time=block_time,
            processed_at=processed_at or utc_now(),
        )

    @property
    def amount_value(self) -> Decimal | None:
        if self.amount is None:
            return None
        try:
            return Decimal(self.amount)
        except InvalidOperation:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "blockTime": self.block_time,
            "direction": self.direction.value,
            "amount": self.amount,
            "counterpartyAddressFull": self.counterparty,
            "counterpartyAddressDisplay": self.counterparty_display,
            "status": self.status.value,
            "classificationMethod": self.classification_method.value,
            "processedAt": to_iso(self.processed_at),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TransactionRecord:
        """Parse a stored record. Raises ValueError/KeyError on a malformed one."""
        block_time = raw.get("blockTime")
        amount = raw.get("amount")
        return cls(
            signature=str(raw["signature"]),
            direction=TransactionDirection(raw.get("direction", "Unknown")),
            amount=str(amount) if amount is not None else None,
            counterparty=str(raw.get("counterpartyAddressFull") or "Unknown"),
            counterparty_display=str(raw.get("counterpartyAddressDisplay") or "Unknown"),
            status=TransactionStatus(raw.get("status", "Success")),
            classification_method=ClassificationMethod(
                raw.get("classificationMethod", ClassificationMethod.DEFAULT.value)
            ),
            block_time=int(block_time) if isinstance(block_time, (int, float)) else None,
            processed_at=parse_iso(raw.get("processedAt")) or utc_now(),
        )


@dataclass(frozen=True, slots=True)
class LedgerStats:
    """Aggregate view of one ledger."""

    total: int
    buy_count: int
    sell_count: int
    transfer_count: int
    unknown_count: int
    buy_volume: Decimal
    sell_volume: Decimal
    last_update: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "buyCount": self.buy_count,
            "sellCount": self.sell_count,
            "transferCount": self.transfer_count,
            "unknownCount": self.unknown_count,
            "buyVolume": f"{self.buy_volume:.2f}",
            "sellVolume": f"{self.sell_volume:.2f}",
            "lastUpdate": to_iso(self.last_update) if self.last_update else None,
        }
