"""Detection-related events."""

from memecoin_tracker.events.detection.detection_events import (
    CountdownExpiredEvent,
    DetectionStateChangedEvent,
    LargeTransactionDetectedEvent,
)

__all__ = [
    "CountdownExpiredEvent",
    "DetectionStateChangedEvent",
    "LargeTransactionDetectedEvent",
]
