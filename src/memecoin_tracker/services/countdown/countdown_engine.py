# -*- coding: utf-8 -*-
"""CountdownEngine: one countdown (launch or holding reward) synchronized through the stores."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from memecoin_tracker.events.detection import CountdownExpiredEvent
from memecoin_tracker.exceptions import StorageError
from memecoin_tracker.models.countdown import CountdownKind, CountdownState
from memecoin_tracker.storage import keys
from memecoin_tracker.utils.timeutils import to_iso, utc_now

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from memecoin_tracker.storage import KeyValueStore

_STORE_KEYS = {
    CountdownKind.LAUNCH: keys.COUNTDOWN,
    CountdownKind.REWARD: keys.REWARD_COUNTDOWN,
}


class CountdownEngine:
    """Reads, extends, resets and re-arms one countdown.

    The shared store is authoritative. The local store keeps a best-effort
    mirror that is only used when the shared copy is missing. Remaining time
    is derived from the stored target on every read.
    """

    def __init__(
        self,
        kind: CountdownKind,
        shared_store: KeyValueStore,
        local_store: KeyValueStore,
        *,
        default_seconds: int,
        ceiling_seconds: int,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utc_now,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            kind: Which countdown this engine drives.
            shared_store: Store shared by all processes (authoritative copy).
            local_store: Per-process store holding the mirror copy.
            default_seconds: Duration applied on creation, expiry and default reset.
            ceiling_seconds: Maximum remaining time an extension may produce.
            event_bus: Optional bus receiving CountdownExpiredEvent.
            clock: Returns the current aware UTC datetime.
        """
        self._kind = kind
        self._shared = shared_store
        self._local = local_store
        self._default = timedelta(seconds=default_seconds)
        self._ceiling = timedelta(seconds=ceiling_seconds)
        self._event_bus = event_bus
        self._clock = clock
        self._logger = get_logger(logger_name or f"{self.__class__.__name__}.{kind.value}")

    @property
    def kind(self) -> CountdownKind:
        return self._kind

    @property
    def key(self) -> str:
        return _STORE_KEYS[self._kind]

    async def load_state(self) -> CountdownState:
        """Current state: the shared copy, else an unexpired local mirror, else a fresh default."""
        state, _ = await self._load()
        return state

    async def _load(self) -> tuple[CountdownState, bool]:
        """State plus whether the shared copy could be read.

        When the shared read fails the mirror (or an unsaved default) is
        returned and nothing is persisted, so a transient failure never
        replaces the target other processes see.
        """
        now = self._clock()
        try:
            raw = await self._shared.get(self.key, strict=True)
        except StorageError:
            local = CountdownState.from_dict(await self._local.get(self.key), self._kind)
            if local is not None:
                return local, False
            return CountdownState.create(self._kind, now + self._default, now=now), False
        shared = CountdownState.from_dict(raw, self._kind)
        if shared is not None:
            return shared, True
        local = CountdownState.from_dict(await self._local.get(self.key), self._kind)
        if local is not None and not local.is_expired(now):
            self._logger.debug("countdown_loaded_from_mirror", target=to_iso(local.target))
            return local, True
        state = CountdownState.create(self._kind, now + self._default, now=now)
        await self._persist(state)
        self._logger.info(
            "countdown_created",
            target=to_iso(state.target),
            default_seconds=self._default.total_seconds(),
        )
        return state, True

    async def remaining(self) -> float:
        """Seconds left on the countdown (never negative)."""
        state = await self.load_state()
        return state.remaining_seconds(self._clock())

    async def tick(self) -> CountdownState:
        """Check for expiry; on expiry fire the side effect, then re-arm at now + default.

        Expiry is only acted on when the shared copy was readable; otherwise
        the next tick checks again.
        """
        state, readable = await self._load()
        now = self._clock()
        if not state.is_expired(now) or not readable:
            return state
        next_state = state.with_target(now + self._default, now=now, reset_by="auto")
        await self._fire_expired(state, next_state)
        await self._persist(next_state)
        self._logger.info(
            "countdown_rearmed",
            expired_at=to_iso(state.target),
            target=to_iso(next_state.target),
        )
        return next_state

    async def extend(self, seconds: float) -> Optional[CountdownState]:
        """Move the target by seconds from max(target, now), clamped to now + ceiling.

        Returns None, writing nothing, when the shared copy could not be read.
        """
        state, readable = await self._load()
        if not readable:
            self._logger.warning("countdown_extend_skipped_unreadable", seconds=seconds)
            return None
        now = self._clock()
        new_target = max(state.target, now) + timedelta(seconds=seconds)
        cap_reached = new_target - now > self._ceiling
        if cap_reached:
            new_target = now + self._ceiling
        next_state = state.with_target(new_target, now=now, cap_reached=cap_reached, reset_by="extension")
        await self._persist(next_state)
        self._logger.info(
            "countdown_extended",
            seconds=seconds,
            target=to_iso(new_target),
            remaining_seconds=next_state.remaining_seconds(now),
            cap_reached=cap_reached,
        )
        return next_state

    async def reset(self, duration_seconds: float | None = None, *, reset_by: str = "admin") -> CountdownState:
        """Set the target to now + duration (default duration when None)."""
        now = self._clock()
        duration = timedelta(seconds=duration_seconds) if duration_seconds is not None else self._default
        current = CountdownState.from_dict(await self._shared.get(self.key), self._kind)
        if current is None:
            next_state = CountdownState.create(self._kind, now + duration, now=now, reset_by=reset_by)
        else:
            next_state = current.with_target(now + duration, now=now, reset_by=reset_by)
        await self._persist(next_state)
        self._logger.info(
            "countdown_reset",
            target=to_iso(next_state.target),
            duration_seconds=duration.total_seconds(),
            reset_by=reset_by,
        )
        return next_state

    async def _persist(self, state: CountdownState) -> None:
        document = state.to_dict()
        await self._shared.set(self.key, document)
        await self._local.set(self.key, document)

    async def _fire_expired(self, expired: CountdownState, next_state: CountdownState) -> None:
        if self._event_bus is None:
            return
        event = CountdownExpiredEvent(
            kind=self._kind.value,
            expired_at=to_iso(expired.target),
            next_target=to_iso(next_state.target),
        )
        try:
            await self._event_bus.dispatch(event)
        except Exception as e:
            self._logger.exception(
                "countdown_expiry_handler_error",
                error_type=type(e).__name__,
                error_message=str(e),
            )
