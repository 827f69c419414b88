# -*- coding: utf-8 -*-
"""Detection and countdown events (bubus BaseEvent)."""

from __future__ import annotations

from typing import Literal, Optional

from bubus import BaseEvent  # type: ignore[import-untyped]


class LargeTransactionDetectedEvent(BaseEvent[None]):
    """Emitted once per transaction whose amount exceeds the large-transaction threshold."""

    signature: str
    direction: Literal["Buy", "Sell", "Transfer", "Unknown"]
    amount: str
    address: str
    address_display: str
    classification_method: str
    countdown_extended: bool = False
    leaderboard_updated: bool = False


class CountdownExpiredEvent(BaseEvent[None]):
    """Emitted when a countdown reaches zero, before it re-arms."""

    kind: Literal["launch", "reward"]
    expired_at: str
    next_target: Optional[str] = None


class DetectionStateChangedEvent(BaseEvent[None]):
    """Emitted when polling starts or stops in this process."""

    is_running: bool
    rpc_url: str
    token_address: str
