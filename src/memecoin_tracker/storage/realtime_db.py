# -*- coding: utf-8 -*-
"""Shared store over a Firebase-style realtime database REST API.

Each key maps to GET/PUT/DELETE {base}/{key}.json. The database keeps the
last write it received. Subscriptions poll the key on the scheduler and
fire when the value differs from the last one this process saw, so every
process converges on the same documents.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from memecoin_tracker.exceptions import RpcRequestError, StorageError
from memecoin_tracker.scheduling import CancelToken, Scheduler
from memecoin_tracker.storage.base import (
    KeyValueStore,
    OnChange,
    Unsubscribe,
    decode_value,
    encode_value,
)

if TYPE_CHECKING:
    from memecoin_tracker.clients.http import AsyncHttpClient


class RealtimeDatabaseStore(KeyValueStore):
    """Remote shared store; last write wins in server order."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        base_url: str,
        scheduler: Scheduler,
        *,
        auth_token: Optional[str] = None,
        poll_seconds: float = 1.0,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        super().__init__(get_logger=get_logger, logger_name=logger_name)
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._scheduler = scheduler
        self._auth_token = auth_token
        self._poll_seconds = poll_seconds
        self._watchers: dict[str, CancelToken] = {}
        self._last_seen: dict[str, str | None] = {}

    def _url(self, key: str) -> str:
        return f"{self._base_url}/{key.strip('/')}.json"

    def _params(self) -> dict[str, Any] | None:
        return {"auth": self._auth_token} if self._auth_token else None

    async def _read(self, key: str) -> str | None:
        try:
            body = await self._http.get(self._url(key), params=self._params())
        except RpcRequestError as e:
            raise StorageError(f"read of {key!r} failed", key=key, cause=e) from e
        return None if body is None else encode_value(key, body)

    async def _write(self, key: str, text: str) -> None:
        try:
            await self._http.put(
                self._url(key), json=decode_value(key, text), params=self._params()
            )
        except RpcRequestError as e:
            raise StorageError(f"write of {key!r} failed", key=key, cause=e) from e
        if key in self._watchers:
            self._last_seen[key] = text

    async def _delete(self, key: str) -> None:
        try:
            await self._http.delete(self._url(key), params=self._params())
        except RpcRequestError as e:
            raise StorageError(f"delete of {key!r} failed", key=key, cause=e) from e
        if key in self._watchers:
            self._last_seen[key] = None

    def subscribe(self, key: str, on_change: OnChange) -> Unsubscribe:
        """Register on_change for key; one polling watcher per key serves all subscribers.

        Writes made through this instance notify immediately and are not
        reported again by the watcher.
        """
        unsubscribe_local = super().subscribe(key, on_change)
        if key not in self._watchers:
            self._watchers[key] = self._scheduler.schedule(
                self._poll_seconds,
                lambda: self._poll_key(key),
                name=f"watch:{key}",
            )

        def _unsubscribe() -> None:
            unsubscribe_local()
            if not self._subscribers.get(key) and key in self._watchers:
                self._watchers.pop(key).cancel()
                self._last_seen.pop(key, None)

        return _unsubscribe

    async def _poll_key(self, key: str) -> None:
        try:
            text = await self._read(key)
        except StorageError as e:
            self._logger.debug(
                "store_watch_read_failed",
                key=key,
                error_type=type(e.cause or e).__name__,
                error_message=str(e),
            )
            return
        if key in self._last_seen and self._last_seen[key] == text:
            return
        self._last_seen[key] = text
        try:
            value = decode_value(key, text)
        except StorageError as e:
            self._logger.warning("store_watch_decode_failed", key=key, error_message=str(e))
            return
        await self._notify(key, value)

    async def aclose(self) -> None:
        for token in self._watchers.values():
            token.cancel()
        self._watchers.clear()
        self._last_seen.clear()
        await super().aclose()
