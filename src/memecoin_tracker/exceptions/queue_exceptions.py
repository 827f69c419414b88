"""Exceptions raised by the in-process transaction queue."""

from __future__ import annotations

from memecoin_tracker.exceptions.exceptions import MemecoinTrackerError


class QueueError(MemecoinTrackerError):
    """Base exception for queue operations."""


class QueueFull(QueueError):
    """Raised by a non-blocking put when the queue is at max size."""


class QueueEmpty(QueueError):
    """Raised by a non-blocking get when nothing is queued."""


class QueueShutdown(QueueError):
    """Raised when the queue was shut down (consumer stopping)."""
