# -*- coding: utf-8 -*-
"""Consumer that reads new transactions from the queue and processes them.

Stops on queue.shutdown() (QueueShutdown) or task cancellation; a failure
while processing one message is logged and the loop continues.
"""

from __future__ import annotations

import asyncio
import structlog
from types import TracebackType
from typing import Any, Callable, Optional, Type

from memecoin_tracker.exceptions import QueueShutdown
from memecoin_tracker.models.detection import NewTransactionRef
from memecoin_tracker.queue import IAsyncQueue, QueueMessage
from memecoin_tracker.services.processing import TransactionProcessorService


class TransactionConsumer:
    """Background task feeding TransactionProcessorService."""

    def __init__(
        self,
        queue: IAsyncQueue[QueueMessage[NewTransactionRef]],
        processor: TransactionProcessorService,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._queue = queue
        self._processor = processor
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._running = False
        self._lock = asyncio.Lock()
        self._worker_task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._running

    async def __aenter__(self) -> TransactionConsumer:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> bool:
        await self.stop()
        return False

    async def start(self) -> None:
        """Start the loop in a background task. Idempotent."""
        async with self._lock:
            if self._running:
                return
            self._running = True
            self._worker_task = asyncio.create_task(self._consume_loop())

    async def stop(self) -> None:
        """Cancel the loop and wait for it. Idempotent."""
        async with self._lock:
            if not self._running:
                return
            self._running = False
            task = self._worker_task
            self._worker_task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _consume_loop(self) -> None:
        self._logger.debug("transaction_consumer_started")
        try:
            while True:
                message = await self._queue.get()
                try:
                    await self._processor.process(message)
                except Exception as e:
                    self._logger.exception(
                        "transaction_processing_failed",
                        signature=message.payload.signature,
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
                finally:
                    self._queue.task_done()
        except QueueShutdown:
            self._logger.info("transaction_consumer_stopped", reason="queue_shutdown")
        except asyncio.CancelledError:
            self._logger.debug("transaction_consumer_cancelled")
            raise
        finally:
            async with self._lock:
                self._running = False
                self._worker_task = None
