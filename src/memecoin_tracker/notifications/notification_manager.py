"""NotificationService: fans messages out to every configured channel."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from memecoin_tracker.notifications.strategies import BaseNotificationStrategy
from memecoin_tracker.notifications.types import NotificationMessage


@dataclass
class NotificationService:
    """Queue-backed dispatcher; notify() never blocks the caller."""

    notifiers: list[BaseNotificationStrategy]
    queue_size: int = 200
    get_logger: Callable[[str], Any] = field(default=structlog.get_logger)
    _queue: asyncio.Queue[NotificationMessage] | None = field(init=False, default=None)
    _worker_task: asyncio.Task[None] | None = field(init=False, default=None)
    _dropped: int = field(init=False, default=0)
    _logger: Any = field(init=False)

    def __post_init__(self) -> None:
        self._logger = self.get_logger("NotificationService")

    @property
    def dropped(self) -> int:
        """Messages discarded because the queue was full."""
        return self._dropped

    async def initialize(self) -> None:
        for notifier in self.notifiers:
            await notifier.initialize()
        if not self.notifiers:
            self._logger.info("notification_init_no_notifiers")
            return
        self._queue = asyncio.Queue[NotificationMessage](maxsize=self.queue_size)
        self._worker_task = asyncio.create_task(self._worker_loop())
        self._logger.debug(
            "notification_init_complete",
            notifiers_count=len(self.notifiers),
            queue_size=self.queue_size,
        )

    async def shutdown(self) -> None:
        """Drain pending messages, then close every channel."""
        queue = self._queue
        if queue is not None:
            queue.shutdown()
            await queue.join()
        if self._worker_task is not None:
            await self._worker_task
            self._worker_task = None
        self._queue = None
        for notifier in self.notifiers:
            await notifier.shutdown()
        self._logger.debug("notification_shutdown_complete", dropped=self._dropped)

    def notify(self, message: NotificationMessage) -> None:
        """Enqueue message; dropped with a warning when the queue is full.

        Raises:
            RuntimeError: If channels exist but initialize() was not awaited.
        """
        queue = self._queue
        if queue is None:
            if not self.notifiers:
                return
            raise RuntimeError("NotificationService not initialized")
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            self._dropped += 1
            self._logger.warning("notification_queue_full_dropped", event_type=message.event_type)

    async def _worker_loop(self) -> None:
        queue = self._queue
        if queue is None:
            return
        while True:
            try:
                message = await queue.get()
            except asyncio.QueueShutDown:
                break
            try:
                for notifier in self.notifiers:
                    try:
                        await notifier.send_notification(message)
                    except Exception as e:
                        self._logger.exception(
                            "notification_send_failed",
                            notifier=type(notifier).__name__,
                            event_type=message.event_type,
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
            finally:
                queue.task_done()
