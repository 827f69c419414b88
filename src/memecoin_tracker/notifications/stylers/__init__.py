"""Notification stylers."""

from memecoin_tracker.notifications.stylers.notification_styler import (
    EventNotificationStyler,
    HtmlNotificationStyler,
)

__all__ = ["EventNotificationStyler", "HtmlNotificationStyler"]
