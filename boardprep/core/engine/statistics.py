# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Accuracy, streak and window statistics over attempt history.

All day boundaries are UTC calendar days.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from typing import Protocol, TypeVar

from boardprep.utils.datetime import to_utc


class HasAnsweredAt(Protocol):
    """Anything carrying an answer timestamp."""

    @property
    def answered_at(self) -> datetime: ...


A = TypeVar("A", bound=HasAnsweredAt)


def _utc_day(value: datetime) -> date:
    return to_utc(value).date()


def compute_accuracy(total: int, correct: int) -> float:
    """Return correct/total, or 0.0 when there is nothing to measure."""
    if total <= 0:
        return 0.0
    return correct / total


def compute_streak(attempt_dates: Iterable[datetime], now: datetime) -> int:
    """Count consecutive UTC days with at least one attempt, ending today.

    Args:
        attempt_dates: Answer timestamps, any order.
        now: Current time.

    Returns:
        Streak length in days. Zero when there is no attempt today,
        whatever the earlier history.
    """
    active_days = {_utc_day(answered_at) for answered_at in attempt_dates}
    day = _utc_day(now)

    streak = 0
    while day in active_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def filter_attempts_in_window(
    attempts: Sequence[A],
    days: int,
    now: datetime,
) -> list[A]:
    """Keep attempts answered within the last ``days`` days.

    Args:
        attempts: Attempts to filter. Order is preserved.
        days: Window length; non-positive windows are empty.
        now: Current time.

    Returns:
        Attempts with answered_at >= now - days.
    """
    if days <= 0:
        return []

    cutoff = to_utc(now) - timedelta(days=days)
    return [a for a in attempts if to_utc(a.answered_at) >= cutoff]
