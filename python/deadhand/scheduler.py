"""
Deadhand background timers.

Each timer is its own daemon thread driving its own schedule.Scheduler, so a
slow check-in mail never delays a watchdog tick and vice versa.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

import schedule

logger = logging.getLogger(__name__)

POLL_S = 1.0


class ScheduledTask(threading.Thread):
    """Background thread that runs one job on one schedule until stopped."""

    def __init__(
        self,
        name: str,
        job: Callable[[], object],
        stop_evt: threading.Event,
        poll_s: float = POLL_S,
    ) -> None:
        super().__init__(name=name, daemon=True)
        self.job = job
        self.stop_evt = stop_evt
        self.poll_s = poll_s
        self.scheduler = schedule.Scheduler()
        self.failures = 0

    @classmethod
    def daily_at(cls, name: str, at: str, job: Callable[[], object],
                 stop_evt: threading.Event) -> "ScheduledTask":
        """Run job every day at local time 'HH:MM'."""
        task = cls(name, job, stop_evt)
        task.scheduler.every().day.at(at).do(task.run_job)
        return task

    @classmethod
    def every_minutes(cls, name: str, minutes: int, job: Callable[[], object],
                      stop_evt: threading.Event) -> "ScheduledTask":
        task = cls(name, job, stop_evt)
        task.scheduler.every(minutes).minutes.do(task.run_job)
        return task

    def run_job(self) -> None:
        """Run the job once; an exception fails this run only."""
        try:
            self.job()
        except Exception:
            self.failures += 1
            logger.exception("[%s] error", self.name)

    def run(self) -> None:
        logger.info("[%s] started, next run %s", self.name, self.scheduler.next_run)
        while not self.stop_evt.is_set():
            self.scheduler.run_pending()
            self.stop_evt.wait(self.poll_s)
        self.scheduler.clear()
