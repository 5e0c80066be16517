"""
Deadhand time sources.

All times are timezone-aware UTC datetimes.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ManualClock:
    """Clock that only moves when told to. Used by tests and the simulator."""

    def __init__(self, start: datetime | None = None) -> None:
        if start is None:
            start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        if start.tzinfo is None:
            raise ValueError("ManualClock needs an aware datetime")
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, delta: timedelta = timedelta(0), **kwargs: float) -> datetime:
        """Move forward by delta (or timedelta(**kwargs)); returns the new time."""
        step = delta + timedelta(**kwargs)
        if step < timedelta(0):
            raise ValueError("ManualClock cannot go backwards")
        with self._lock:
            self._now += step
            return self._now
