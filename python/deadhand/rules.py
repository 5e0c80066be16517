"""
Deadhand rule evaluation: threshold comparison on whole elapsed days.
"""

from __future__ import annotations

from datetime import timedelta

ONE_DAY = timedelta(days=1)


def whole_days(elapsed: timedelta) -> int:
    """Elapsed duration truncated to whole days (never below zero)."""
    if elapsed <= timedelta(0):
        return 0
    return elapsed // ONE_DAY


def threshold_crossed(elapsed: timedelta, threshold_days: int) -> bool:
    """
    True once whole elapsed days reach the threshold.

    Exactly at the boundary counts as crossed: 7 days fires a 7-day
    threshold, 6 days 23 hours does not.
    """
    return whole_days(elapsed) >= threshold_days


def time_until_activation(elapsed: timedelta, threshold_days: int) -> timedelta:
    """Remaining time before threshold_crossed turns True (zero if already)."""
    remaining = timedelta(days=threshold_days) - elapsed
    return max(remaining, timedelta(0))
