"""Notification channels."""

from memecoin_tracker.notifications.strategies.base import BaseNotificationStrategy
from memecoin_tracker.notifications.strategies.console import ConsoleNotifier
from memecoin_tracker.notifications.strategies.telegram import TelegramNotifier

__all__ = ["BaseNotificationStrategy", "ConsoleNotifier", "TelegramNotifier"]
