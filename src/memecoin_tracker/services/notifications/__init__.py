"""Notification services fed by the event bus."""

from memecoin_tracker.services.notifications.reaction_notifier import ReactionNotifier

__all__ = ["ReactionNotifier"]
