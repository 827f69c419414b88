"""Scheduler interface: periodic async jobs with cancel tokens."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

Job = Callable[[], Awaitable[object]]


@dataclass(slots=True)
class CancelToken:
    """Handle returned by Scheduler.schedule(); cancel() stops further runs."""

    name: str
    _on_cancel: Callable[[], None] = field(repr=False)
    cancelled: bool = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._on_cancel()


class Scheduler(ABC):
    """Runs async jobs every interval_seconds until their token is cancelled.

    A job that raises is logged and keeps its schedule.
    """

    @abstractmethod
    def schedule(
        self,
        interval_seconds: float,
        fn: Job,
        *,
        name: str | None = None,
        run_immediately: bool = True,
    ) -> CancelToken:
        """Register fn to run every interval_seconds (first run now when run_immediately)."""
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Cancel every job."""
        ...
