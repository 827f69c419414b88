# -*- coding: utf-8 -*-
"""In-process key-value store (single-process shared store, tests)."""

from __future__ import annotations

from typing import Any, Callable, Optional

import structlog

from memecoin_tracker.storage.base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dict of serialized values; writes are immediately visible and subscribers fire at once."""

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        super().__init__(get_logger=get_logger, logger_name=logger_name)
        self._data: dict[str, str] = {}

    async def _read(self, key: str) -> str | None:
        return self._data.get(key)

    async def _write(self, key: str, text: str) -> None:
        self._data[key] = text

    async def _delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
