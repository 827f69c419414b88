"""CountdownState: persisted target of one countdown (launch or holding reward).

Remaining time is always derived from target - now, never decremented, so
every process reading the same stored target shows the same value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from memecoin_tracker.utils.timeutils import parse_iso, to_iso


class CountdownKind(str, Enum):
    """Countdown instances; the value is used in logs and events."""

    LAUNCH = "launch"
    REWARD = "reward"


@dataclass(frozen=True, slots=True)
class CountdownState:
    """One countdown's shared document."""

    kind: CountdownKind
    target: datetime
    """Instant the countdown reaches zero; in the future while active."""
    last_update: datetime
    cap_reached: bool = False
    """Set when the last extension was clamped to the ceiling."""
    reset_by: str = "system"
    version: int = 1
    """Incremented on every write."""

    @classmethod
    def create(
        cls,
        kind: CountdownKind,
        target: datetime,
        *,
        now: datetime,
        reset_by: str = "system",
    ) -> CountdownState:
        """Create a fresh state (no cap, version 1)."""
        return cls(kind=kind, target=target, last_update=now, reset_by=reset_by)

    def remaining_seconds(self, now: datetime) -> float:
        """Seconds left, never negative."""
        return max(0.0, (self.target - now).total_seconds())

    def is_expired(self, now: datetime) -> bool:
        return self.target <= now

    def with_target(
        self,
        target: datetime,
        *,
        now: datetime,
        cap_reached: bool = False,
        reset_by: str | None = None,
    ) -> CountdownState:
        """Return a copy moved to a new target (bumps version)."""
        return replace(
            self,
            target=target,
            last_update=now,
            cap_reached=cap_reached,
            reset_by=reset_by or self.reset_by,
            version=self.version + 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetDate": to_iso(self.target),
            "lastUpdate": to_iso(self.last_update),
            "capReached": self.cap_reached,
            "resetBy": self.reset_by,
            "kind": self.kind.value,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, raw: Any, kind: CountdownKind) -> CountdownState | None:
        """Parse a stored document; None if it is missing or has no usable target."""
        if not isinstance(raw, dict):
            return None
        target = parse_iso(raw.get("targetDate"))
        if target is None:
            return None
        last_update = parse_iso(raw.get("lastUpdate")) or target
        version = raw.get("version")
        return cls(
            kind=kind,
            target=target,
            last_update=last_update,
            cap_reached=bool(raw.get("capReached", False)),
            reset_by=str(raw.get("resetBy") or "system"),
            version=version if isinstance(version, int) and version > 0 else 1,
        )
