"""
Deadhand: a dead man's switch.

Deadhand waits for heartbeats from its operator:
- A daily check-in mail carries a secret reset link
- Opening the link records a heartbeat
- Without one for the configured number of days, the secret payload is
  mailed to every recipient, once
"""

__version__ = "0.1.0"

from deadhand.errors import ConfigError, DeadhandError, DeliveryError
from deadhand.state import SwitchState
from deadhand.notify import Notifier, SMTPConfig
from deadhand.watchdog import TickOutcome, Watchdog

__all__ = [
    "ConfigError",
    "DeadhandError",
    "DeliveryError",
    "SwitchState",
    "Notifier",
    "SMTPConfig",
    "TickOutcome",
    "Watchdog",
]
