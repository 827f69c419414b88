# -*- coding: utf-8 -*-
"""Telegram channel: announces large transactions and finished rounds to the community chat."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog
from telegram import Bot
from telegram.error import BadRequest, Forbidden, NetworkError, RetryAfter, TelegramError, TimedOut
from telegram.request import HTTPXRequest

from memecoin_tracker.notifications.strategies.base import BaseNotificationStrategy
from memecoin_tracker.notifications.types import NotificationMessage

if TYPE_CHECKING:  # pragma: no cover
    from memecoin_tracker.config import Settings
    from memecoin_tracker.notifications.types import NotificationStyler


def _default_bot(token: str, connect_timeout: float, read_timeout: float) -> Bot:
    request = HTTPXRequest(connect_timeout=connect_timeout, read_timeout=read_timeout)
    return Bot(token=token, request=request)


class TelegramNotifier(BaseNotificationStrategy):
    """Send notifications with python-telegram-bot, rate limited per minute.

    Only event types listed in telegram.event_types are forwarded; detection
    start/stop chatter stays on the console.
    """

    def __init__(
        self,
        settings: "Settings",
        styler: "NotificationStyler",
        *,
        bot_factory: Callable[[str, float, float], Any] = _default_bot,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        super().__init__(settings)
        cfg = settings.telegram
        if not cfg.bot_token or not cfg.chat_id:
            raise ValueError("TelegramNotifier requires telegram.bot_token and telegram.chat_id.")
        self._token = cfg.bot_token
        self._chat_id = cfg.chat_id
        self._event_types = cfg.event_types
        self._styler = styler
        self._bot_factory = bot_factory
        self._bot: Any = None
        self._sent_at: list[float] = []
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def is_running(self) -> bool:
        return self._bot is not None

    async def initialize(self) -> None:
        if self._bot is not None:
            return
        cfg = self.settings.telegram
        self._bot = self._bot_factory(self._token, cfg.connect_timeout, cfg.read_timeout)
        self._logger.debug("telegram_notifier_initialized", event_types=sorted(self._event_types))

    async def shutdown(self) -> None:
        self._bot = None

    def accepts(self, message: NotificationMessage) -> bool:
        return not self._event_types or message.event_type in self._event_types

    async def send_notification(self, message: NotificationMessage) -> None:
        if self._bot is None:
            self._logger.warning("telegram_not_running_cannot_send", event_type=message.event_type)
            return
        if not self.accepts(message):
            return
        await self._wait_for_slot()
        await self._send(self._styler.render(message), message.event_type)

    def _backoff(self, attempt: int) -> float:
        return min(60.0, self.settings.telegram.backoff_base_seconds * (2 ** (attempt - 1)))

    async def _send(self, text: str, event_type: str) -> None:
        max_retries = self.settings.telegram.max_retries
        for attempt in range(1, max_retries + 1):
            try:
                await self._bot.send_message(chat_id=self._chat_id, text=text, parse_mode="HTML")
                self._sent_at.append(time.monotonic())
                return
            except RetryAfter as e:
                retry_after = e.retry_after
                delay = retry_after.total_seconds() if hasattr(retry_after, "total_seconds") else float(retry_after)
                self._logger.warning("telegram_rate_limited", retry_seconds=delay, attempt=attempt)
                await asyncio.sleep(delay)
            except (BadRequest, Forbidden) as e:
                self._logger.error(
                    "telegram_message_rejected",
                    event_type=event_type,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                return
            except (NetworkError, TimedOut, TelegramError) as e:
                self._logger.warning(
                    "telegram_send_retry",
                    attempt=attempt,
                    max_retries=max_retries,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                await asyncio.sleep(self._backoff(attempt))
        self._logger.error("telegram_message_dropped", event_type=event_type, attempts=max_retries)

    async def _wait_for_slot(self) -> None:
        limit = self.settings.telegram.messages_per_minute
        now = time.monotonic()
        self._sent_at = [t for t in self._sent_at if now - t < 60.0]
        if len(self._sent_at) >= limit:
            await asyncio.sleep(60.0 - (now - self._sent_at[0]))
