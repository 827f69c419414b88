# -*- coding: utf-8 -*-
"""Async queue interface between the transaction poller and its consumer."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IAsyncQueue[T](ABC):
    """Bounded FIFO with shutdown.

    Implementations translate their native errors into QueueFull,
    QueueEmpty and QueueShutdown from memecoin_tracker.exceptions.
    """

    @abstractmethod
    async def put(self, item: T) -> None:
        """Enqueue item, waiting for space. Raises QueueShutdown after shutdown()."""
        ...

    @abstractmethod
    def put_nowait(self, item: T) -> None:
        """Enqueue item or raise QueueFull / QueueShutdown."""
        ...

    @abstractmethod
    async def get(self) -> T:
        """Dequeue, waiting for an item. Raises QueueShutdown once shut down and drained."""
        ...

    @abstractmethod
    def get_nowait(self) -> T:
        """Dequeue or raise QueueEmpty / QueueShutdown."""
        ...

    @abstractmethod
    def task_done(self) -> None:
        """Mark one dequeued item as processed."""
        ...

    @abstractmethod
    def shutdown(self, immediate: bool = False) -> None:
        """Refuse new items; with immediate=True also drop the queued ones."""
        ...

    @abstractmethod
    async def join(self) -> None:
        """Wait until every dequeued item was marked with task_done()."""
        ...

    @abstractmethod
    def qsize(self) -> int:
        ...
