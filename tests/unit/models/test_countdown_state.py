# -*- coding: utf-8 -*-
"""Unit tests for CountdownState."""

from __future__ import annotations

from datetime import datetime, timedelta

from memecoin_tracker.models.countdown import CountdownKind, CountdownState


def test_remaining_is_derived_from_target_and_never_negative(now_utc: datetime) -> None:
    state = CountdownState.create(CountdownKind.LAUNCH, now_utc + timedelta(seconds=90), now=now_utc)

    assert state.remaining_seconds(now_utc) == 90.0
    assert state.remaining_seconds(now_utc + timedelta(seconds=200)) == 0.0


def test_target_equal_to_now_is_expired(now_utc: datetime) -> None:
    state = CountdownState.create(CountdownKind.LAUNCH, now_utc, now=now_utc)

    assert state.is_expired(now_utc)


def test_with_target_bumps_version_and_keeps_kind(now_utc: datetime) -> None:
    state = CountdownState.create(CountdownKind.REWARD, now_utc, now=now_utc)

    moved = state.with_target(now_utc + timedelta(minutes=20), now=now_utc, reset_by="auto")

    assert moved.version == 2
    assert moved.kind is CountdownKind.REWARD
    assert moved.reset_by == "auto"
    assert state.version == 1


def test_document_round_trip(now_utc: datetime) -> None:
    state = CountdownState.create(CountdownKind.LAUNCH, now_utc + timedelta(seconds=30), now=now_utc)

    document = state.to_dict()

    assert document["targetDate"] == "2026-02-13T12:00:30.000Z"
    assert document["capReached"] is False
    assert CountdownState.from_dict(document, CountdownKind.LAUNCH) == state


def test_from_dict_rejects_document_without_target() -> None:
    assert CountdownState.from_dict({"lastUpdate": "2026-02-13T12:00:00Z"}, CountdownKind.LAUNCH) is None
    assert CountdownState.from_dict("garbage", CountdownKind.LAUNCH) is None
