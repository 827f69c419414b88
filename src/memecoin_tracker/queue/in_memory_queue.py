# -*- coding: utf-8 -*-
"""asyncio.Queue-backed implementation of IAsyncQueue."""

from __future__ import annotations

import asyncio

from memecoin_tracker.exceptions import QueueEmpty, QueueFull, QueueShutdown
from memecoin_tracker.queue.base import IAsyncQueue


class InMemoryQueue[T](IAsyncQueue[T]):
    """Single-process queue; maxsize 0 means unbounded."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=maxsize)

    async def put(self, item: T) -> None:
        try:
            await self._queue.put(item)
        except asyncio.QueueShutDown as e:
            raise QueueShutdown from e

    def put_nowait(self, item: T) -> None:
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueShutDown as e:
            raise QueueShutdown from e
        except asyncio.QueueFull as e:
            raise QueueFull from e

    async def get(self) -> T:
        try:
            return await self._queue.get()
        except asyncio.QueueShutDown as e:
            raise QueueShutdown from e

    def get_nowait(self) -> T:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueShutDown as e:
            raise QueueShutdown from e
        except asyncio.QueueEmpty as e:
            raise QueueEmpty from e

    def task_done(self) -> None:
        self._queue.task_done()

    def shutdown(self, immediate: bool = False) -> None:
        self._queue.shutdown(immediate)

    async def join(self) -> None:
        await self._queue.join()

    def qsize(self) -> int:
        return self._queue.qsize()
