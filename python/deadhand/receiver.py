"""
Deadhand heartbeat receiver.

A bad token is an ordinary outcome (scanners probe the endpoint), never an
exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from deadhand.state import SwitchState

logger = logging.getLogger(__name__)

SUCCESS = "Heartbeat success."
FAILURE = "Heartbeat failure."


@dataclass(frozen=True)
class HeartbeatResult:
    ok: bool
    message: str


class HeartbeatReceiver:
    """Validates reset tokens and records heartbeats."""

    def __init__(self, state: SwitchState) -> None:
        self.state = state

    def handle(self, token: Optional[str]) -> HeartbeatResult:
        if self.state.record_heartbeat(token):
            logger.info("heartbeat success")
            return HeartbeatResult(True, SUCCESS)
        logger.info("heartbeat failure")
        return HeartbeatResult(False, FAILURE)
