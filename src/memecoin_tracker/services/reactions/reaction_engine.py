# -*- coding: utf-8 -*-
"""LargeTransactionReactionEngine: side effects for transactions above the threshold."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from memecoin_tracker.events.detection import LargeTransactionDetectedEvent
from memecoin_tracker.models.reaction import LeaderboardEntry, NotificationRecord
from memecoin_tracker.models.transaction import TransactionDirection, TransactionRecord
from memecoin_tracker.utils.timeutils import utc_now
from memecoin_tracker.utils.validation import mask_address

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from memecoin_tracker.services.countdown import CountdownEngine
    from memecoin_tracker.services.reactions.records import Leaderboard, NotificationLog


@dataclass(frozen=True, slots=True)
class ReactionResult:
    """Which effects succeeded for one large transaction."""

    notified: bool = False
    leaderboard_updated: bool = False
    countdown_extended: bool = False
    event_dispatched: bool = False


class LargeTransactionReactionEngine:
    """Runs the four large-transaction effects; each one fails independently."""

    def __init__(
        self,
        notification_log: NotificationLog,
        leaderboard: Leaderboard,
        launch_countdown: CountdownEngine,
        *,
        threshold: Decimal | int = 1_000_000,
        extension_seconds: int = 30,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utc_now,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._notifications = notification_log
        self._leaderboard = leaderboard
        self._countdown = launch_countdown
        self._threshold = Decimal(threshold)
        self._extension_seconds = extension_seconds
        self._event_bus = event_bus
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def is_large(self, record: TransactionRecord) -> bool:
        """True when the amount is resolvable and strictly above the threshold."""
        amount = record.amount_value
        return amount is not None and amount > self._threshold

    async def react(self, record: TransactionRecord) -> ReactionResult | None:
        """Apply effects for record; None when it is not a large transaction."""
        if not self.is_large(record):
            return None
        now = self._clock()
        amount = record.amount or "0.00"
        self._logger.info(
            "large_transaction_detected",
            signature=record.signature,
            direction=record.direction.value,
            amount=amount,
            address_masked=mask_address(record.counterparty),
        )

        notified = await self._run_effect(
            "notification",
            record,
            lambda: self._notifications.append(
                NotificationRecord(
                    timestamp=now,
                    transaction_ref=record.signature,
                    message=f"Large {record.direction.value.lower()} of {amount} tokens detected",
                    amount=amount,
                    direction=record.direction.value,
                    address=record.counterparty,
                )
            ),
        )

        leaderboard_updated = False
        if record.direction is TransactionDirection.BUY:
            leaderboard_updated = await self._run_effect(
                "leaderboard",
                record,
                lambda: self._leaderboard.upsert(
                    LeaderboardEntry(address=record.counterparty, amount=amount, timestamp=now)
                ),
            )

        countdown_extended = await self._run_effect(
            "countdown_extension",
            record,
            lambda: self._countdown.extend(self._extension_seconds),
        )

        event_dispatched = False
        if self._event_bus is not None:
            event = LargeTransactionDetectedEvent(
                signature=record.signature,
                direction=record.direction.value,
                amount=amount,
                address=record.counterparty,
                address_display=record.counterparty_display,
                classification_method=record.classification_method.value,
                countdown_extended=countdown_extended,
                leaderboard_updated=leaderboard_updated,
            )
            event_dispatched = await self._run_effect(
                "event", record, lambda: self._event_bus.dispatch(event)
            )

        return ReactionResult(
            notified=notified,
            leaderboard_updated=leaderboard_updated,
            countdown_extended=countdown_extended,
            event_dispatched=event_dispatched,
        )

    async def _run_effect(
        self, effect: str, record: TransactionRecord, run: Callable[[], Any]
    ) -> bool:
        try:
            result = await run()
        except Exception as e:
            self._logger.exception(
                "large_transaction_effect_failed",
                effect=effect,
                signature=record.signature,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False
        # False or None: the effect was skipped without writing
        return result is not False and result is not None
