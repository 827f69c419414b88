# -*- coding: utf-8 -*-
"""Console channel: writes rendered notifications to a text stream."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional, TextIO

from memecoin_tracker.notifications.strategies.base import BaseNotificationStrategy
from memecoin_tracker.notifications.types import NotificationMessage

if TYPE_CHECKING:  # pragma: no cover
    from memecoin_tracker.config import Settings
    from memecoin_tracker.notifications.types import NotificationStyler


class ConsoleNotifier(BaseNotificationStrategy):
    """Print notifications (stdout unless another stream is given)."""

    def __init__(
        self,
        settings: "Settings",
        styler: Optional["NotificationStyler"] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        super().__init__(settings)
        self._running = False
        self._styler = styler
        self._stream = stream

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    async def send_notification(self, message: NotificationMessage) -> None:
        if not self._running or not self.settings.console.enabled:
            return
        body = self._styler.render(message) if self._styler else message.message
        print(body, file=self._stream or sys.stdout, flush=True)
