# -*- coding: utf-8 -*-
"""Points ledger backed by HTTPS callable cloud functions.

Callable protocol: POST {base}/{function} with {"data": {...}}; the reply is
{"result": {"success": bool, "data": {...}, "error": str}}.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Callable, Optional, cast

import structlog

from memecoin_tracker.clients.points.base import PointsBalance, PointsLedger
from memecoin_tracker.exceptions import (
    ExchangeRatioError,
    InsufficientPointsError,
    PointsLedgerError,
    RpcRequestError,
)
from memecoin_tracker.utils.timeutils import to_iso, utc_now
from memecoin_tracker.utils.validation import mask_address

if TYPE_CHECKING:
    from memecoin_tracker.clients.http import AsyncHttpClient

_INSUFFICIENT = re.compile(r"Insufficient points\. Available: (\d+), Requested: (\d+)")


class CloudFunctionsPointsLedger(PointsLedger):
    """getUserBalance / addPoints / claimToken over HTTPS."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        functions_url: str,
        *,
        exchange_ratio: int = 10,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._http = http_client
        self._base_url = functions_url.rstrip("/")
        self._ratio = exchange_ratio
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _invoke(self, function: str, data: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.post(f"{self._base_url}/{function}", json={"data": data})
        except RpcRequestError as e:
            raise PointsLedgerError(f"{function} request failed: {e}") from e
        result = response.get("result") if isinstance(response, dict) else None
        if not isinstance(result, dict):
            raise PointsLedgerError(f"{function} returned an unexpected payload")
        result = cast(dict[str, Any], result)
        if not result.get("success"):
            message = str(result.get("error") or f"{function} failed")
            match = _INSUFFICIENT.search(message)
            if match:
                raise InsufficientPointsError(int(match.group(1)), int(match.group(2)))
            if "exchange ratio" in message.lower():
                raise ExchangeRatioError(message)
            raise PointsLedgerError(message)
        payload = result.get("data")
        return cast(dict[str, Any], payload) if isinstance(payload, dict) else {}

    async def get_balance(self, wallet: str) -> PointsBalance:
        data = await self._invoke("getUserBalance", {"walletAddress": wallet})
        return PointsBalance(
            wallet=wallet,
            points=int(data.get("points") or 0),
            tokens=int(data.get("memeTokens") or 0),
        )

    async def credit_points(self, wallet: str, amount: int, reason: str) -> PointsBalance:
        if amount <= 0:
            raise PointsLedgerError("Points must be positive")
        await self._invoke("addPoints", {"walletAddress": wallet, "points": amount, "reason": reason})
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
        data = await self._invoke(
            "claimToken",
            {
                "walletAddress": wallet,
                "pointsAmount": points,
                "tokenAmount": tokens,
                "timestamp": to_iso(utc_now()),
            },
        )
        self._logger.info(
            "points_exchanged",
            wallet_masked=mask_address(wallet),
            points=points,
            tokens=tokens,
            transaction_id=data.get("transactionId"),
        )
        return PointsBalance(
            wallet=wallet,
            points=int(data.get("newPointsBalance") or 0),
            tokens=int(data.get("newTokenBalance") or 0),
        )
