# -*- coding: utf-8 -*-
"""Per-process persistent store: one JSON document on disk."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from memecoin_tracker.exceptions import StorageError, StorageQuotaExceededError
from memecoin_tracker.storage.base import KeyValueStore


class JsonFileKeyValueStore(KeyValueStore):
    """Local mirror store.

    The document maps key -> serialized value text. Every write rewrites
    the file through a temporary file and os.replace, and is refused when
    the serialized document would exceed quota_bytes.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        quota_bytes: int | None = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        super().__init__(get_logger=get_logger, logger_name=logger_name)
        self._path = Path(path)
        self._quota_bytes = quota_bytes
        self._data: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        data: dict[str, str] = {}
        if self._path.exists():
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                self._logger.warning(
                    "local_store_unreadable",
                    path=str(self._path),
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                raw = {}
            if isinstance(raw, dict):
                data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        self._data = data
        return data

    def _flush(self, data: dict[str, str], key: str) -> None:
        text = json.dumps(data, ensure_ascii=False)
        size = len(text.encode("utf-8"))
        if self._quota_bytes is not None and size > self._quota_bytes:
            raise StorageQuotaExceededError(
                f"local store would grow to {size} bytes (quota {self._quota_bytes})",
                key=key,
            )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_name, self._path)
        except OSError as e:
            raise StorageError(f"cannot write {self._path}", key=key, cause=e) from e

    async def _read(self, key: str) -> str | None:
        return self._load().get(key)

    async def _write(self, key: str, text: str) -> None:
        data = dict(self._load())
        data[key] = text
        self._flush(data, key)
        self._data = data

    async def _delete(self, key: str) -> None:
        data = dict(self._load())
        if data.pop(key, None) is None:
            return
        self._flush(data, key)
        self._data = data
