"""
Deadhand switch state: the single shared record of liveness.

One lock covers (last_heartbeat, armed). It is only ever held for a
compare-and-set; email is never sent while holding it.
"""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from deadhand.clock import Clock, utc_now

TOKEN_BYTES = 16


def generate_token() -> str:
    """Random URL-safe token for authenticating heartbeats."""
    return secrets.token_urlsafe(TOKEN_BYTES)


@dataclass(frozen=True)
class StateSnapshot:
    """Consistent view of the switch taken under the lock."""
    taken_at: datetime
    last_heartbeat: datetime
    armed: bool

    @property
    def elapsed(self) -> timedelta:
        return self.taken_at - self.last_heartbeat


class SwitchState:
    """Process-wide switch state, shared by the HTTP listener and both timers."""

    def __init__(self, clock: Clock = utc_now, secret_token: Optional[str] = None) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._secret = secret_token if secret_token is not None else generate_token()
        if not self._secret:
            raise ValueError("secret token must not be empty")
        self._last_heartbeat = clock()
        self._armed = True

    def __repr__(self) -> str:
        # never include the token
        snap = self.snapshot()
        return f"SwitchState(last_heartbeat={snap.last_heartbeat.isoformat()}, armed={snap.armed})"

    @property
    def secret_token(self) -> str:
        return self._secret

    @property
    def last_heartbeat(self) -> datetime:
        with self._lock:
            return self._last_heartbeat

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._armed

    def token_matches(self, token: Optional[str]) -> bool:
        """Timing-safe comparison against the secret token."""
        if not token:
            return False
        return secrets.compare_digest(
            token.encode("utf-8"), self._secret.encode("utf-8")
        )

    def record_heartbeat(self, token: Optional[str]) -> bool:
        """
        Record a heartbeat if token is the secret token.

        Returns False (and changes nothing) on mismatch. The stored time only
        ever moves forward.
        """
        if not self.token_matches(token):
            return False
        with self._lock:
            now = self._clock()
            if now > self._last_heartbeat:
                self._last_heartbeat = now
        return True

    def time_since_last_heartbeat(self) -> timedelta:
        with self._lock:
            return self._clock() - self._last_heartbeat

    def try_fire(self) -> bool:
        """
        Disarm the switch. Returns True only for the one caller that actually
        disarmed it; that caller must perform the activation.
        """
        with self._lock:
            if not self._armed:
                return False
            self._armed = False
            return True

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return StateSnapshot(
                taken_at=self._clock(),
                last_heartbeat=self._last_heartbeat,
                armed=self._armed,
            )
