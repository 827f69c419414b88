"""Envelope for items passed through the queue."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from memecoin_tracker.utils.timeutils import utc_now


@dataclass(frozen=True, slots=True)
class QueueMessage[T]:
    """Payload plus id, enqueue time and free-form metadata (e.g. token, rpc url)."""

    id: uuid.UUID
    payload: T
    created_at: datetime
    metadata: dict[str, Any] | None = None

    @classmethod
    def create(cls, payload: T, metadata: dict[str, Any] | None = None) -> QueueMessage[T]:
        return cls(id=uuid.uuid4(), payload=payload, created_at=utc_now(), metadata=metadata)

    def meta(self, key: str, default: Any = None) -> Any:
        return (self.metadata or {}).get(key, default)
