"""Deterministic scheduler driven by explicit advance() calls (tests, tools)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog

from memecoin_tracker.scheduling.base import CancelToken, Job, Scheduler


@dataclass(slots=True)
class _ManualJob:
    name: str
    interval_seconds: float
    fn: Job
    next_due: float
    active: bool = True


class ManualScheduler(Scheduler):
    """Keeps a virtual clock; jobs run only when the caller advances it."""

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._jobs: list[_ManualJob] = []
        self._elapsed = 0.0
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def job_names(self) -> list[str]:
        """Names of jobs that are still scheduled."""
        return [job.name for job in self._jobs if job.active]

    def schedule(
        self,
        interval_seconds: float,
        fn: Job,
        *,
        name: str | None = None,
        run_immediately: bool = True,
    ) -> CancelToken:
        job = _ManualJob(
            name=name or getattr(fn, "__qualname__", f"job-{len(self._jobs)}"),
            interval_seconds=interval_seconds,
            fn=fn,
            next_due=self._elapsed if run_immediately else self._elapsed + interval_seconds,
        )
        self._jobs.append(job)

        def _cancel() -> None:
            job.active = False

        return CancelToken(name=job.name, _on_cancel=_cancel)

    async def run_pending(self) -> int:
        """Run every active job that is due at the current virtual time. Returns runs performed."""
        runs = 0
        for job in list(self._jobs):
            while job.active and job.next_due <= self._elapsed:
                job.next_due += job.interval_seconds
                runs += 1
                try:
                    await job.fn()
                except Exception as e:
                    self._logger.exception(
                        "scheduler_job_error",
                        job=job.name,
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
        self._jobs = [job for job in self._jobs if job.active]
        return runs

    async def advance(self, seconds: float) -> int:
        """Move the virtual clock forward and run whatever became due."""
        self._elapsed += seconds
        return await self.run_pending()

    async def shutdown(self) -> None:
        for job in self._jobs:
            job.active = False
        self._jobs.clear()
