"""
Deadhand service wiring: one switch, one listener, two timers.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence

from deadhand.activator import Activator
from deadhand.checkin import CheckinEmailer
from deadhand.clock import Clock, utc_now
from deadhand.config import Settings
from deadhand.mailbox import Mailbox
from deadhand.notify import Notifier, SMTPConfig
from deadhand.payload import SecretPayload
from deadhand.receiver import HeartbeatReceiver
from deadhand.scheduler import ScheduledTask
from deadhand.server import DeadhandHTTP, Handler
from deadhand.state import SwitchState
from deadhand.watchdog import Watchdog

logger = logging.getLogger(__name__)


class DeadManSwitch:
    """Owns the shared state and hands it to every component that needs it."""

    def __init__(
        self,
        settings: Settings,
        sender: Mailbox,
        recipients: Sequence[Mailbox],
        payload: SecretPayload,
        clock: Clock = utc_now,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.settings = settings
        self.state = SwitchState(clock=clock)
        self.notifier = notifier or Notifier(SMTPConfig(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            sender=sender,
            timeout=settings.smtp_timeout_s,
        ))
        self.receiver = HeartbeatReceiver(self.state)
        self.checkin = CheckinEmailer(self.state, self.notifier, settings.public_url)
        self.activator = Activator(self.notifier, recipients)
        self.watchdog = Watchdog(
            self.state, self.activator, payload, settings.activation_threshold_days
        )
        self.stop_evt = threading.Event()
        self.tasks: List[ScheduledTask] = []
        self.httpd: Optional[DeadhandHTTP] = None

    def start(self) -> None:
        """Bind the listener and start both timers. Raises OSError if bind fails."""
        s = self.settings
        self.httpd = DeadhandHTTP((s.listen_host, s.listen_port), Handler, self.receiver)
        self.tasks = [
            ScheduledTask.daily_at("checkin", s.checkin_time, self.checkin.send_checkin, self.stop_evt),
            ScheduledTask.every_minutes(
                "watchdog", s.watchdog_interval_minutes, self.watchdog.tick, self.stop_evt
            ),
        ]
        for t in self.tasks:
            t.start()

    @property
    def address(self) -> tuple:
        assert self.httpd is not None
        return self.httpd.server_address[:2]

    def serve_forever(self) -> None:
        assert self.httpd is not None
        host, port = self.address
        logger.info("deadhand listening on %s:%s", host, port)
        self.httpd.serve_forever()

    def shutdown(self) -> None:
        """Stop timers and the listener. Blocks until serve_forever returns, so
        it must not run on the thread that is serving."""
        self.stop_evt.set()
        if self.httpd is not None:
            self.httpd.shutdown()

    def close(self) -> None:
        if self.httpd is not None:
            self.httpd.server_close()
        for t in self.tasks:
            t.join(timeout=5)
