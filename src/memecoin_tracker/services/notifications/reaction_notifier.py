# -*- coding: utf-8 -*-
"""ReactionNotifier: turns detection and countdown events into user notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from memecoin_tracker.events.detection import (
    CountdownExpiredEvent,
    DetectionStateChangedEvent,
    LargeTransactionDetectedEvent,
)
from memecoin_tracker.models.countdown import CountdownKind
from memecoin_tracker.notifications.types import NotificationMessage

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from memecoin_tracker.notifications.notification_manager import NotificationService


_DIRECTION_EVENT_TYPES = {
    "Buy": "large_buy",
    "Sell": "large_sell",
}


class ReactionNotifier:
    """Subscribes to detection events and sends notifications via NotificationService."""

    def __init__(
        self,
        notification_service: "NotificationService",
        event_bus: Any,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._notification_service = notification_service
        self._event_bus: "EventBus" = event_bus
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def start(self) -> None:
        self._event_bus.on(LargeTransactionDetectedEvent, self._on_large_transaction)
        self._event_bus.on(CountdownExpiredEvent, self._on_countdown_expired)
        self._event_bus.on(DetectionStateChangedEvent, self._on_detection_changed)
        self._logger.debug("reaction_notifier_started")

    def stop(self) -> None:
        handlers = getattr(self._event_bus, "handlers", {})
        for event_cls, handler in (
            (LargeTransactionDetectedEvent, self._on_large_transaction),
            (CountdownExpiredEvent, self._on_countdown_expired),
            (DetectionStateChangedEvent, self._on_detection_changed),
        ):
            key = event_cls.__name__
            if key in handlers:
                handlers[key] = [h for h in handlers[key] if h != handler]
        self._logger.debug("reaction_notifier_stopped")

    def _on_large_transaction(self, event: LargeTransactionDetectedEvent) -> None:
        event_type = _DIRECTION_EVENT_TYPES.get(event.direction, "large_transaction")
        message = f"Large {event.direction.lower()} of {event.amount} tokens detected"
        if event.countdown_extended:
            message += " (countdown extended)"
        self._notification_service.notify(
            NotificationMessage(
                event_type=event_type,
                message=message,
                payload={
                    "signature": event.signature,
                    "amount": event.amount,
                    "address_display": event.address_display,
                    "countdown_extended": event.countdown_extended,
                    "leaderboard_updated": event.leaderboard_updated,
                },
            )
        )
        self._logger.debug("large_transaction_notified", signature=event.signature)

    def _on_countdown_expired(self, event: CountdownExpiredEvent) -> None:
        if event.kind == CountdownKind.LAUNCH.value:
            event_type = "round_complete"
            message = "Round complete. The next round has started."
        else:
            event_type = "reward_round_complete"
            message = "Reward round complete. Holder snapshot taken."
        payload: dict[str, Any] = {"expired_at": event.expired_at}
        if event.next_target:
            payload["next_target"] = event.next_target
        self._notification_service.notify(
            NotificationMessage(event_type=event_type, message=message, payload=payload)
        )

    def _on_detection_changed(self, event: DetectionStateChangedEvent) -> None:
        if event.is_running:
            event_type, message = "detection_started", "Transaction detection started"
        else:
            event_type, message = "detection_stopped", "Transaction detection stopped"
        self._notification_service.notify(
            NotificationMessage(event_type=event_type, message=message, payload={"rpc_url": event.rpc_url})
        )
