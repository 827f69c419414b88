# -*- coding: utf-8 -*-
"""TransactionClassifier: direction, amount and counterparty from token balance deltas.

This is a best-effort heuristic for simple two-party swaps against the pool.
Only the pool-delta strategy is authoritative; records produced by a
fallback strategy carry its classification method so they can be shown as
lower confidence.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any, Callable, Optional

import structlog

from memecoin_tracker.exceptions import TransactionParseError
from memecoin_tracker.models.transaction import (
    ClassificationMethod,
    TransactionDirection,
    TransactionRecord,
    TransactionStatus,
)
from memecoin_tracker.services.classification.parsed_transaction import ParsedTransaction
from memecoin_tracker.services.classification.strategies import (
    DEFAULT_STRATEGIES,
    ClassificationContext,
    DirectionResult,
    DirectionStrategy,
)

UNKNOWN_ADDRESS = "Unknown"


class TransactionClassifier:
    """Turns a fetched transaction into a TransactionRecord."""

    def __init__(
        self,
        token_mint: str,
        pool_address: str,
        *,
        strategies: Optional[Sequence[DirectionStrategy]] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._ctx = ClassificationContext(token_mint=token_mint, pool_address=pool_address)
        self._strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def context(self) -> ClassificationContext:
        return self._ctx

    def with_token(self, token_mint: str) -> TransactionClassifier:
        """Classifier for another mint against the same pool and strategies."""
        if token_mint == self._ctx.token_mint:
            return self
        return TransactionClassifier(
            token_mint,
            self._ctx.pool_address,
            strategies=self._strategies,
            logger_name="TransactionClassifier",
        )

    def classify(
        self,
        payload: dict[str, Any],
        *,
        signature: str,
        block_time: int | None = None,
    ) -> TransactionRecord:
        """Classify one transaction. A payload that cannot be parsed yields an Unknown record."""
        try:
            tx = ParsedTransaction.from_rpc(payload, signature=signature, block_time=block_time)
        except TransactionParseError as e:
            self._logger.warning(
                "transaction_parse_failed",
                signature=signature,
                error_message=str(e),
            )
            return TransactionRecord.create(
                signature,
                direction=TransactionDirection.UNKNOWN,
                amount=None,
                counterparty=UNKNOWN_ADDRESS,
                status=TransactionStatus.SUCCESS,
                classification_method=ClassificationMethod.DEFAULT,
                block_time=block_time,
            )
        return self.classify_parsed(tx)

    def classify_parsed(self, tx: ParsedTransaction) -> TransactionRecord:
        result = self._direction(tx)
        amount = self._amount(tx)
        counterparty = self._counterparty(tx)
        record = TransactionRecord.create(
            tx.signature,
            direction=result.direction,
            amount=amount,
            counterparty=counterparty,
            status=TransactionStatus.FAILED if tx.failed else TransactionStatus.SUCCESS,
            classification_method=result.method,
            block_time=tx.block_time,
        )
        self._logger.debug(
            "transaction_classified",
            signature=tx.signature,
            direction=record.direction.value,
            amount=record.amount,
            classification_method=result.method.value,
        )
        return record

    def _direction(self, tx: ParsedTransaction) -> DirectionResult:
        for strategy in self._strategies:
            result = strategy.classify(tx, self._ctx)
            if result is not None:
                return result
        return DirectionResult(TransactionDirection.UNKNOWN, ClassificationMethod.DEFAULT)

    def _amount(self, tx: ParsedTransaction) -> Decimal | None:
        """Larger of |pool delta| and |counterparty delta|; None when neither is resolvable."""
        candidates: list[Decimal] = []
        pool_delta = self._ctx.pool_delta(tx)
        if pool_delta is not None:
            candidates.append(abs(pool_delta))
        change = self._ctx.largest_counterparty_change(tx)
        if change is not None:
            candidates.append(abs(change.delta))
        return max(candidates) if candidates else None

    def _counterparty(self, tx: ParsedTransaction) -> str:
        pool = self._ctx.pool_address

        change = self._ctx.largest_counterparty_change(tx)
        if change is None:
            moved = [c for c in tx.balance_changes if c.delta != 0 and not c.belongs_to(pool)]
            change = max(moved, key=lambda c: abs(c.delta)) if moved else None
        if change is not None:
            address = change.owner or change.account
            if address:
                return address

        for key in tx.account_keys:
            if key.pubkey != pool:
                return key.pubkey
        for key in tx.account_keys:
            if key.writable and key.pubkey != pool:
                return key.pubkey
        if tx.fee_payer:
            return tx.fee_payer
        for c in tx.balance_changes:
            if c.owner and c.owner != pool:
                return c.owner
        return UNKNOWN_ADDRESS
