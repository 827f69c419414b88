"""Notification subsystem."""

from memecoin_tracker.notifications.notification_manager import NotificationService
from memecoin_tracker.notifications.strategies import BaseNotificationStrategy, ConsoleNotifier, TelegramNotifier
from memecoin_tracker.notifications.stylers import EventNotificationStyler, HtmlNotificationStyler
from memecoin_tracker.notifications.types import NotificationMessage, NotificationStyler

__all__ = [
    "BaseNotificationStrategy",
    "ConsoleNotifier",
    "EventNotificationStyler",
    "HtmlNotificationStyler",
    "NotificationMessage",
    "NotificationService",
    "NotificationStyler",
    "TelegramNotifier",
]
