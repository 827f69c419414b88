# -*- coding: utf-8 -*-
"""In-process points ledger for local runs and tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import structlog

from memecoin_tracker.clients.points.base import PointsBalance, PointsLedger
from memecoin_tracker.exceptions import (
    ExchangeRatioError,
    InsufficientPointsError,
    PointsLedgerError,
)
from memecoin_tracker.utils.validation import mask_address


class InMemoryPointsLedger(PointsLedger):
    """Dict-backed ledger; a single asyncio.Lock makes each mutation atomic."""

    def __init__(
        self,
        *,
        exchange_ratio: int = 10,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._ratio = exchange_ratio
        self._balances: dict[str, tuple[int, int]] = {}
        self._history: list[dict[str, Any]] = []
        self._lock = asyncio.Lock()
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def history(self) -> list[dict[str, Any]]:
        """Credits and exchanges applied so far, oldest first."""
        return list(self._history)

    async def get_balance(self, wallet: str) -> PointsBalance:
        points, tokens = self._balances.get(wallet, (0, 0))
        return PointsBalance(wallet=wallet, points=points, tokens=tokens)

    async def credit_points(self, wallet: str, amount: int, reason: str) -> PointsBalance:
        if not wallet:
            raise PointsLedgerError("Missing wallet address")
        if amount <= 0:
            raise PointsLedgerError("Points must be positive")
        async with self._lock:
            points, tokens = self._balances.get(wallet, (0, 0))
            self._balances[wallet] = (points + amount, tokens)
            self._history.append({"type": "credit", "wallet": wallet, "points": amount, "reason": reason})
        self._logger.info(
            "points_credited",
            wallet_masked=mask_address(wallet),
            points=amount,
            reason=reason,
        )
        return await self.get_balance(wallet)

    async def exchange_points_for_tokens(
        self, wallet: str, points: int, tokens: int
    ) -> PointsBalance:
        if points <= 0 or tokens <= 0:
            raise ExchangeRatioError("pointsAmount and tokenAmount must be positive")
        if tokens != points * self._ratio:
            raise ExchangeRatioError(f"tokenAmount must be {self._ratio}x pointsAmount")
        async with self._lock:
            available, held = self._balances.get(wallet, (0, 0))
            if available < points:
                raise InsufficientPointsError(available, points)
            self._balances[wallet] = (available - points, held + tokens)
            self._history.append(
                {"type": "exchange", "wallet": wallet, "points": points, "tokens": tokens}
            )
        self._logger.info(
            "points_exchanged",
            wallet_masked=mask_address(wallet),
            points=points,
            tokens=tokens,
        )
        return await self.get_balance(wallet)
