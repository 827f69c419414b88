"""Periodic job scheduling."""

from memecoin_tracker.scheduling.asyncio_scheduler import AsyncioScheduler
from memecoin_tracker.scheduling.base import CancelToken, Job, Scheduler
from memecoin_tracker.scheduling.manual import ManualScheduler

__all__ = ["AsyncioScheduler", "CancelToken", "Job", "ManualScheduler", "Scheduler"]
