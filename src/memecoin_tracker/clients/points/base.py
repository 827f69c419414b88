"""Points / token-exchange ledger contract.

Atomicity lives behind this boundary: implementations apply each credit or
exchange as one indivisible update.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PointsBalance:
    """Points and exchanged tokens held by one wallet."""

    wallet: str
    points: int
    tokens: int


class PointsLedger(ABC):
    """External ledger of reward points and the tokens they were exchanged for."""

    @abstractmethod
    async def get_balance(self, wallet: str) -> PointsBalance:
        """Current balance; unknown wallets have zero points and zero tokens."""
        ...

    @abstractmethod
    async def credit_points(self, wallet: str, amount: int, reason: str) -> PointsBalance:
        """Add amount (> 0) points and return the new balance."""
        ...

    @abstractmethod
    async def exchange_points_for_tokens(
        self, wallet: str, points: int, tokens: int
    ) -> PointsBalance:
        """Move points into tokens at the configured ratio.

        Raises:
            ExchangeRatioError: If tokens != points * ratio or an amount is not positive.
            InsufficientPointsError: If the wallet holds fewer than points.
        """
        ...
