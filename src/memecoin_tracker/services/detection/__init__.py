"""Transaction detection: polling and tracking."""

from memecoin_tracker.services.detection.poller import MAX_BLOCKS_PER_POLL, PollMode, TransactionPoller
from memecoin_tracker.services.detection.tracker import TransactionTracker

__all__ = ["MAX_BLOCKS_PER_POLL", "PollMode", "TransactionPoller", "TransactionTracker"]
