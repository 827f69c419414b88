"""Key-value store interface shared by the local and shared stores.

Values are JSON-serializable objects; they cross the backend boundary as
text. Serialization, quota and transport failures never reach callers:
they are logged and the operation degrades to a no-op (get returns None).
Read-modify-write callers read with strict=True instead, so an unreadable
value raises StorageError and is never mistaken for an absent key.
"""

from __future__ import annotations

import inspect
import json
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import structlog

from memecoin_tracker.exceptions import StorageError

OnChange = Callable[[Any], Awaitable[None] | None]
Unsubscribe = Callable[[], None]


def encode_value(key: str, value: Any) -> str:
    """Serialize a value to JSON text; StorageError if it is not serializable."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise StorageError(f"value for {key!r} is not JSON-serializable", key=key, cause=e) from e


def decode_value(key: str, text: str | None) -> Any:
    """Parse JSON text; StorageError if it is corrupt."""
    if text is None:
        return None
    try:
        return json.loads(text)
    except ValueError as e:
        raise StorageError(f"stored value for {key!r} is not valid JSON", key=key, cause=e) from e


class KeyValueStore(ABC):
    """Async get/set/remove/subscribe over string keys.

    Subclasses implement the raw text operations (_read, _write, _delete);
    this class owns serialization, error containment and local change
    notification.
    """

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._subscribers: dict[str, list[OnChange]] = {}
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @abstractmethod
    async def _read(self, key: str) -> str | None:
        """Return the stored text for key, or None."""
        ...

    @abstractmethod
    async def _write(self, key: str, text: str) -> None:
        ...

    @abstractmethod
    async def _delete(self, key: str) -> None:
        ...

    async def get(self, key: str, *, strict: bool = False) -> Any:
        """Return the decoded value for key, or None if absent.

        An unreadable value is logged and reported as None, or raised as
        StorageError when strict is set.
        """
        try:
            return decode_value(key, await self._read(key))
        except StorageError as e:
            self._logger.warning(
                "store_get_failed",
                key=key,
                error_type=type(e.cause or e).__name__,
                error_message=str(e),
            )
            if strict:
                raise
            return None

    async def set(self, key: str, value: Any) -> None:
        """Store value under key; on failure log and leave the stored value unchanged."""
        try:
            await self._write(key, encode_value(key, value))
        except StorageError as e:
            self._logger.warning(
                "store_set_failed",
                key=key,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return
        await self._notify(key, value)

    async def remove(self, key: str) -> None:
        """Delete key; on failure log and do nothing."""
        try:
            await self._delete(key)
        except StorageError as e:
            self._logger.warning(
                "store_remove_failed",
                key=key,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return
        await self._notify(key, None)

    def subscribe(self, key: str, on_change: OnChange) -> Unsubscribe:
        """Call on_change(value) after every write to key through this store instance.

        Returns a function that removes the subscription.
        """
        self._subscribers.setdefault(key, []).append(on_change)

        def _unsubscribe() -> None:
            callbacks = self._subscribers.get(key, [])
            if on_change in callbacks:
                callbacks.remove(on_change)

        return _unsubscribe

    async def _notify(self, key: str, value: Any) -> None:
        for callback in list(self._subscribers.get(key, [])):
            await self._invoke(key, callback, value)

    async def _invoke(self, key: str, callback: OnChange, value: Any) -> None:
        try:
            result = callback(value)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._logger.exception(
                "store_subscriber_error",
                key=key,
                error_type=type(e).__name__,
                error_message=str(e),
            )

    async def aclose(self) -> None:
        """Release backend resources (no-op by default)."""
        self._subscribers.clear()
