# -*- coding: utf-8 -*-
"""Event bus and event types."""

from memecoin_tracker.events.bus import get_event_bus, set_event_bus
from memecoin_tracker.events.detection import (
    CountdownExpiredEvent,
    DetectionStateChangedEvent,
    LargeTransactionDetectedEvent,
)

__all__ = [
    "get_event_bus",
    "set_event_bus",
    "CountdownExpiredEvent",
    "DetectionStateChangedEvent",
    "LargeTransactionDetectedEvent",
]
