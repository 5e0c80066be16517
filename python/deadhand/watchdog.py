"""
Deadhand watchdog: polls the switch state and fires activation once.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from deadhand import rules
from deadhand.activator import ActivationReport, Activator
from deadhand.payload import SecretPayload
from deadhand.state import SwitchState

logger = logging.getLogger(__name__)


class TickOutcome(enum.Enum):
    ALIVE = "alive"    # below threshold
    FIRED = "fired"    # this tick performed the activation
    SPENT = "spent"    # threshold crossed, already fired earlier


class Watchdog:
    """Compares time since last heartbeat with the activation threshold."""

    def __init__(
        self,
        state: SwitchState,
        activator: Activator,
        payload: SecretPayload,
        threshold_days: int,
    ) -> None:
        if threshold_days < 1:
            raise ValueError("threshold_days must be >= 1")
        self.state = state
        self.activator = activator
        self.payload = payload
        self.threshold_days = threshold_days
        self.last_report: Optional[ActivationReport] = None
        self.activations = 0

    def tick(self) -> TickOutcome:
        elapsed = self.state.time_since_last_heartbeat()
        if not rules.threshold_crossed(elapsed, self.threshold_days):
            logger.debug(
                "alive: %s until activation",
                rules.time_until_activation(elapsed, self.threshold_days),
            )
            return TickOutcome.ALIVE

        if not self.state.try_fire():
            return TickOutcome.SPENT

        logger.warning(
            "no heartbeat for %d days (threshold %d), activating",
            rules.whole_days(elapsed), self.threshold_days,
        )
        self.activations += 1
        # outside the state lock: this does network I/O
        self.last_report = self.activator.activate(self.payload)
        return TickOutcome.FIRED
