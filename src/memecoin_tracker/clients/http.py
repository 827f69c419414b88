# -*- coding: utf-8 -*-
"""Async HTTP client with retries, backoff and rate-limit handling."""

from __future__ import annotations

import asyncio
import random
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Dict, Optional
from structlog.contextvars import bound_contextvars

from memecoin_tracker.config import Settings
from memecoin_tracker.exceptions import RpcRequestError


class AsyncHttpClient:
    """Shared HTTP client for the Solana RPC, the realtime database and cloud functions.

    Injects Settings and optionally an aiohttp.ClientSession. If no session
    is provided, one is created lazily and must be closed via aclose() or by
    using the client as an async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Configuration (rpc.timeout_seconds, rpc.max_retries).
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.rpc.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at 4 seconds."""
        base = min(4.0, 0.25 * (2**attempt))
        return base + random.uniform(0.0, 0.15)

    @staticmethod
    def _retry_after(response: aiohttp.ClientResponse) -> Optional[float]:
        header = response.headers.get("Retry-After")
        if not header:
            return None
        try:
            return float(header)
        except ValueError:
            return None

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        """Perform a request and return the decoded JSON body (None for an empty body).

        Retries transport errors, timeouts, 5xx and 429 responses up to
        rpc.max_retries attempts; 4xx responses other than 429 fail at once.

        Raises:
            RpcRequestError: If the request fails after all retries.
        """
        verb = method.lower()
        request_id = uuid.uuid4().hex[:12]
        max_retries = self._settings.rpc.max_retries
        last_error: Optional[Exception] = None
        timeout = aiohttp.ClientTimeout(total=timeout_seconds) if timeout_seconds else None

        with bound_contextvars(
            http_method=verb,
            http_url=url,
            http_request_id=request_id,
            http_max_retries=max_retries,
        ):
            for attempt in range(max_retries):
                with bound_contextvars(http_attempt=attempt + 1):
                    try:
                        session = await self._get_session()
                        async with session.request(
                            method.upper(),
                            url,
                            params=params,
                            json=json,
                            timeout=timeout,
                        ) as response:
                            if response.status == 429:
                                retry_after = self._retry_after(response)
                                self._logger.warning(
                                    "http_rate_limited",
                                    http_status_code=429,
                                    http_retry_after_seconds=retry_after,
                                )
                                await asyncio.sleep(
                                    retry_after
                                    if retry_after is not None and retry_after > 0
                                    else self._backoff_delay(attempt)
                                )
                                continue

                            response.raise_for_status()
                            return await response.json(content_type=None)
                    except aiohttp.ClientResponseError as e:
                        last_error = e
                        self._logger.debug(
                            f"http_{verb}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                            http_status_code=e.status,
                        )
                        if 400 <= e.status < 500:
                            break
                        await asyncio.sleep(self._backoff_delay(attempt))
                    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                        last_error = e
                        self._logger.debug(
                            f"http_{verb}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                        await asyncio.sleep(self._backoff_delay(attempt))

            status_code = (
                last_error.status if isinstance(last_error, aiohttp.ClientResponseError) else None
            )
            self._logger.warning(
                f"http_{verb}_failed",
                http_status_code=status_code,
                http_attempts=max_retries,
                error_type=type(last_error).__name__ if last_error else None,
                error_message=str(last_error) if last_error else None,
            )
            raise RpcRequestError(
                f"{method.upper()} failed after {max_retries} attempts: {url}",
                url=url,
                status_code=status_code,
                cause=last_error,
            ) from last_error

    async def get(self, url: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET and return JSON."""
        return await self.request("GET", url, params=params)

    async def post(
        self,
        url: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        """POST a JSON body and return JSON."""
        return await self.request(
            "POST", url, params=params, json=json, timeout_seconds=timeout_seconds
        )

    async def put(self, url: str, *, json: Any, params: Optional[Dict[str, Any]] = None) -> Any:
        """PUT a JSON body and return JSON."""
        return await self.request("PUT", url, params=params, json=json)

    async def delete(self, url: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        """DELETE and return JSON (usually null)."""
        return await self.request("DELETE", url, params=params)
