"""Scheduler backed by one asyncio task per job."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import structlog

from memecoin_tracker.scheduling.base import CancelToken, Job, Scheduler


class AsyncioScheduler(Scheduler):
    """Production scheduler; runs inside the current event loop."""

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._tasks: dict[int, asyncio.Task[None]] = {}
        self._next_id = 0
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def schedule(
        self,
        interval_seconds: float,
        fn: Job,
        *,
        name: str | None = None,
        run_immediately: bool = True,
    ) -> CancelToken:
        job_id = self._next_id
        self._next_id += 1
        job_name = name or getattr(fn, "__qualname__", f"job-{job_id}")
        task = asyncio.create_task(
            self._run(job_name, interval_seconds, fn, run_immediately),
            name=job_name,
        )
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(job_id, None))
        self._logger.debug("scheduler_job_started", job=job_name, interval_seconds=interval_seconds)
        return CancelToken(name=job_name, _on_cancel=task.cancel)

    async def _run(
        self,
        job_name: str,
        interval_seconds: float,
        fn: Job,
        run_immediately: bool,
    ) -> None:
        if not run_immediately:
            await asyncio.sleep(interval_seconds)
        while True:
            try:
                await fn()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._logger.exception(
                    "scheduler_job_error",
                    job=job_name,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
            await asyncio.sleep(interval_seconds)

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._logger.debug("scheduler_shutdown", jobs=len(tasks))
