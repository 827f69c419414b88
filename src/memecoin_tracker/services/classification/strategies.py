"""Direction strategies, tried in order; the first non-None result wins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from memecoin_tracker.models.transaction import ClassificationMethod, TransactionDirection
from memecoin_tracker.services.classification.parsed_transaction import (
    ParsedTransaction,
    TokenBalanceChange,
)


@dataclass(frozen=True, slots=True)
class ClassificationContext:
    """Watched mint and its liquidity pool."""

    token_mint: str
    pool_address: str

    def pool_changes(self, tx: ParsedTransaction) -> list[TokenBalanceChange]:
        return [c for c in tx.changes_for_mint(self.token_mint) if c.belongs_to(self.pool_address)]

    def non_pool_changes(self, tx: ParsedTransaction) -> list[TokenBalanceChange]:
        return [
            c for c in tx.changes_for_mint(self.token_mint) if not c.belongs_to(self.pool_address)
        ]

    def pool_delta(self, tx: ParsedTransaction) -> Decimal | None:
        """Net change of the pool's holdings of the mint; None if the pool is not in the balances."""
        changes = self.pool_changes(tx)
        if not changes:
            return None
        return sum((c.delta for c in changes), Decimal(0))

    def largest_counterparty_change(self, tx: ParsedTransaction) -> TokenBalanceChange | None:
        """Non-pool account of the mint with the largest absolute change (None when all are zero)."""
        changes = [c for c in self.non_pool_changes(tx) if c.delta != 0]
        if not changes:
            return None
        return max(changes, key=lambda c: abs(c.delta))


@dataclass(frozen=True, slots=True)
class DirectionResult:
    direction: TransactionDirection
    method: ClassificationMethod


class DirectionStrategy(ABC):
    """One way of inferring the trade direction."""

    method: ClassificationMethod

    @abstractmethod
    def classify(self, tx: ParsedTransaction, ctx: ClassificationContext) -> DirectionResult | None:
        ...

    def _result(self, direction: TransactionDirection) -> DirectionResult:
        return DirectionResult(direction=direction, method=self.method)


class PoolDeltaStrategy(DirectionStrategy):
    """Pool gained tokens: the counterparty sold. Pool lost tokens: the counterparty bought."""

    method = ClassificationMethod.POOL_DELTA

    def classify(self, tx: ParsedTransaction, ctx: ClassificationContext) -> DirectionResult | None:
        delta = ctx.pool_delta(tx)
        if delta is None or delta == 0:
            return None
        return self._result(TransactionDirection.SELL if delta > 0 else TransactionDirection.BUY)


class MintDeltaStrategy(DirectionStrategy):
    """Sign of the largest non-pool change of the watched mint."""

    method = ClassificationMethod.MINT_DELTA

    def classify(self, tx: ParsedTransaction, ctx: ClassificationContext) -> DirectionResult | None:
        change = ctx.largest_counterparty_change(tx)
        if change is None:
            return None
        return self._result(TransactionDirection.BUY if change.delta > 0 else TransactionDirection.SELL)


class AccountCountStrategy(DirectionStrategy):
    """More token accounts of the mint after than before reads as a buy; fewer as a sell."""

    method = ClassificationMethod.ACCOUNT_COUNT

    def classify(self, tx: ParsedTransaction, ctx: ClassificationContext) -> DirectionResult | None:
        changes = tx.changes_for_mint(ctx.token_mint)
        before = sum(1 for c in changes if c.in_pre)
        after = sum(1 for c in changes if c.in_post)
        if after > before:
            return self._result(TransactionDirection.BUY)
        if after < before:
            return self._result(TransactionDirection.SELL)
        return None


class DefaultStrategy(DirectionStrategy):
    """Transfer when the mint appears at all, Unknown otherwise. Always answers."""

    method = ClassificationMethod.DEFAULT

    def classify(self, tx: ParsedTransaction, ctx: ClassificationContext) -> DirectionResult | None:
        if tx.touches_mint(ctx.token_mint):
            return self._result(TransactionDirection.TRANSFER)
        return self._result(TransactionDirection.UNKNOWN)


DEFAULT_STRATEGIES: tuple[DirectionStrategy, ...] = (
    PoolDeltaStrategy(),
    MintDeltaStrategy(),
    AccountCountStrategy(),
    DefaultStrategy(),
)
