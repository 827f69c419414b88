"""Countdown engine."""

from memecoin_tracker.services.countdown.countdown_engine import CountdownEngine

__all__ = ["CountdownEngine"]
