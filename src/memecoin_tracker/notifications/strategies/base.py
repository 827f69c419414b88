# -*- coding: utf-8 -*-
"""Base notification channel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from memecoin_tracker.notifications.types import NotificationMessage

if TYPE_CHECKING:  # pragma: no cover
    from memecoin_tracker.config.config import Settings


class BaseNotificationStrategy(ABC):
    """A channel that delivers NotificationMessage instances."""

    def __init__(self, settings: "Settings"):
        self.settings = settings

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """True between initialize() and shutdown()."""

    @abstractmethod
    async def initialize(self) -> None:
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        pass

    @abstractmethod
    async def send_notification(self, message: NotificationMessage) -> None:
        """Deliver one message."""
