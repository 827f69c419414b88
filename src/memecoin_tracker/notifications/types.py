"""Notification message types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class NotificationMessage:
    """One user-facing notice (large transaction, round complete, detection state)."""

    event_type: str
    message: str
    title: str | None = None
    payload: dict[str, Any] | None = None


class NotificationStyler(Protocol):
    """Turns a NotificationMessage into the text a channel prints."""

    def render(self, message: NotificationMessage) -> str:
        ...
