"""TransactionTracker: drives the poller from the shared detection control document."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from memecoin_tracker.events.detection import DetectionStateChangedEvent
from memecoin_tracker.exceptions import QueueShutdown, RpcApiError, RpcRequestError
from memecoin_tracker.models.detection import ConnectionStatus, DetectionControl, NewTransactionRef
from memecoin_tracker.queue import QueueMessage
from memecoin_tracker.storage import keys
from memecoin_tracker.utils.validation import mask_address

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from memecoin_tracker.queue import IAsyncQueue
    from memecoin_tracker.scheduling import CancelToken, Scheduler
    from memecoin_tracker.services.detection.poller import TransactionPoller
    from memecoin_tracker.services.holders import HolderSnapshotEngine
    from memecoin_tracker.storage import KeyValueStore, Unsubscribe


class TransactionTracker:
    """Polls for new transactions while detection control says so and queues them.

    Follows the detectionControl key of the shared store: when it flips to
    running the poll job (and the holder refresh job) is scheduled, when it
    flips to stopped they are cancelled. Each tick re-reads the control
    document, so a stop seen late still prevents the next poll.
    """

    def __init__(
        self,
        poller: TransactionPoller,
        queue: IAsyncQueue[QueueMessage[NewTransactionRef]],
        shared_store: KeyValueStore,
        local_store: KeyValueStore,
        scheduler: Scheduler,
        *,
        poll_seconds: float = 5.0,
        holder_engine: HolderSnapshotEngine | None = None,
        holder_refresh_seconds: float = 10.0,
        event_bus: EventBus | None = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            poller: Transaction poller (injected).
            queue: Queue consumed by TransactionConsumer.
            shared_store: Store holding the authoritative detectionControl.
            local_store: Store holding the local mirror of detectionControl.
            scheduler: Runs the poll and holder refresh jobs.
            poll_seconds: Interval between ticks.
            holder_engine: Optional holder engine refreshed while detection runs.
            holder_refresh_seconds: Interval between holder refreshes.
            event_bus: Optional bus receiving DetectionStateChangedEvent.
        """
        self._poller = poller
        self._queue = queue
        self._shared = shared_store
        self._local = local_store
        self._scheduler = scheduler
        self._poll_seconds = poll_seconds
        self._holders = holder_engine
        self._holder_refresh_seconds = holder_refresh_seconds
        self._event_bus = event_bus
        self._is_updating = False
        self._poll_job: CancelToken | None = None
        self._holder_job: CancelToken | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._connected_url: str | None = None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def is_polling(self) -> bool:
        return self._poll_job is not None

    @property
    def is_updating(self) -> bool:
        return self._is_updating

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._poller.status

    async def start(self) -> None:
        """Follow detectionControl and apply its current value. Idempotent."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._shared.subscribe(keys.DETECTION_CONTROL, self._on_control_changed)
        await self._apply(await self._read_control())
        self._logger.debug("transaction_tracker_started")

    async def stop(self) -> None:
        """Stop following detectionControl and cancel the jobs."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel_jobs()
        self._logger.debug("transaction_tracker_stopped")

    async def _read_control(self) -> DetectionControl | None:
        control = DetectionControl.from_dict(await self._shared.get(keys.DETECTION_CONTROL))
        if control is None:
            control = DetectionControl.from_dict(await self._local.get(keys.DETECTION_CONTROL))
        return control

    async def _on_control_changed(self, value: Any) -> None:
        control = DetectionControl.from_dict(value)
        if control is not None:
            await self._local.set(keys.DETECTION_CONTROL, control.to_dict())
        await self._apply(control)

    async def _apply(self, control: DetectionControl | None) -> None:
        running = control is not None and control.is_running
        if running and control is not None:
            if control.token_address and control.token_address != self._poller.token_address:
                self._poller.use_token(control.token_address)
                if self._holders is not None:
                    self._holders.use_token(control.token_address)
            if self._poll_job is None:
                self._poll_job = self._scheduler.schedule(
                    self._poll_seconds, self.tick, name="transaction_poll"
                )
                if self._holders is not None:
                    self._holder_job = self._scheduler.schedule(
                        self._holder_refresh_seconds, self._holders.tick, name="holders_refresh"
                    )
                self._logger.info(
                    "detection_started",
                    rpc_url=control.rpc_url,
                    token_masked=mask_address(control.token_address),
                )
                await self._publish(control)
        elif self._poll_job is not None:
            self._cancel_jobs()
            self._logger.info("detection_stopped")
            if control is not None:
                await self._publish(control)

    def _cancel_jobs(self) -> None:
        for job in (self._poll_job, self._holder_job):
            if job is not None:
                job.cancel()
        self._poll_job = None
        self._holder_job = None

    async def _publish(self, control: DetectionControl) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.dispatch(
                DetectionStateChangedEvent(
                    is_running=control.is_running,
                    rpc_url=control.rpc_url,
                    token_address=control.token_address,
                )
            )
        except Exception as e:
            self._logger.exception(
                "detection_event_dispatch_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )

    async def tick(self) -> int:
        """One polling round. Returns the number of transactions queued.

        Skipped while a previous round is still running or detection is off.
        Every error is logged; none escapes.
        """
        if self._is_updating:
            self._logger.debug("tracker_tick_skipped_busy")
            return 0
        self._is_updating = True
        try:
            control = await self._read_control()
            if control is None or not control.is_running:
                return 0
            if not await self._ensure_connected(control.rpc_url):
                return 0
            try:
                refs = await self._poller.poll()
            except (RpcRequestError, RpcApiError) as e:
                self._poller.mark_disconnected()
                self._logger.warning(
                    "tracker_poll_failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                return 0
            queued = 0
            for ref in refs:
                try:
                    await self._queue.put(
                        QueueMessage[NewTransactionRef].create(
                            payload=ref,
                            metadata={
                                "token_address": control.token_address or self._poller.token_address,
                                "rpc_url": control.rpc_url,
                            },
                        )
                    )
                    queued += 1
                except QueueShutdown:
                    self._logger.warning("tracker_queue_shut_down", signature=ref.signature)
                    break
            if queued:
                self._logger.debug("tracker_transactions_queued", count=queued)
            return queued
        except Exception as e:
            self._logger.exception(
                "tracker_tick_error",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return 0
        finally:
            self._is_updating = False

    async def _ensure_connected(self, rpc_url: str) -> bool:
        url = rpc_url or self._poller.endpoint_url
        if self._poller.status is ConnectionStatus.CONNECTED and url == self._connected_url:
            return True
        result = await self._poller.connect(url)
        self._connected_url = url if result.success else None
        return result.success
