"""
Deadhand configuration from environment variables.

The CLI loads a .env file (python-dotenv) before calling Settings.from_env,
so every key below may also live there.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from deadhand.errors import ConfigError

DEFAULT_THRESHOLD_DAYS = 7
DEFAULT_PORT = 6969
DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 587
DEFAULT_SMTP_TIMEOUT_S = 20.0
DEFAULT_CHECKIN_TIME = "08:00"
DEFAULT_WATCHDOG_INTERVAL_MIN = 60

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass(frozen=True)
class Settings:
    """Runtime settings. smtp_host=None means dev mode (print-only)."""
    activation_threshold_days: int = DEFAULT_THRESHOLD_DAYS
    listen_host: str = "0.0.0.0"
    listen_port: int = DEFAULT_PORT
    public_url: str = f"http://localhost:{DEFAULT_PORT}"
    smtp_host: Optional[str] = DEFAULT_SMTP_HOST
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_user: Optional[str] = None  # defaults to the sender address
    smtp_password: Optional[str] = None
    smtp_timeout_s: float = DEFAULT_SMTP_TIMEOUT_S
    checkin_time: str = DEFAULT_CHECKIN_TIME
    watchdog_interval_minutes: int = DEFAULT_WATCHDOG_INTERVAL_MIN
    log_level: str = "INFO"

    @property
    def dev_mode(self) -> bool:
        return not self.smtp_host

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        port = _int(env, "RS_LISTEN_PORT", DEFAULT_PORT, minimum=0)
        if port > 65535:
            raise ConfigError(f"RS_LISTEN_PORT out of range: {port}")

        checkin_time = env.get("RS_CHECKIN_TIME", DEFAULT_CHECKIN_TIME).strip()
        if not _HHMM_RE.match(checkin_time):
            raise ConfigError(f"RS_CHECKIN_TIME must be HH:MM, got {checkin_time!r}")

        timeout_raw = env.get("RS_SMTP_TIMEOUT", str(DEFAULT_SMTP_TIMEOUT_S))
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ConfigError(f"RS_SMTP_TIMEOUT is not a number: {timeout_raw!r}") from None
        if timeout <= 0:
            raise ConfigError("RS_SMTP_TIMEOUT must be positive")

        public_url = env.get("RS_PUBLIC_URL") or f"http://localhost:{port}"
        if not public_url.startswith(("http://", "https://")):
            raise ConfigError(f"RS_PUBLIC_URL must be an http(s) URL: {public_url}")

        return cls(
            activation_threshold_days=_int(
                env, "RS_ACTIVATION_THRESHOLD", DEFAULT_THRESHOLD_DAYS, minimum=1
            ),
            listen_host=env.get("RS_LISTEN_HOST", "0.0.0.0"),
            listen_port=port,
            public_url=public_url.rstrip("/"),
            smtp_host=env.get("RS_SMTP_HOST", DEFAULT_SMTP_HOST).strip() or None,
            smtp_port=_int(env, "RS_SMTP_PORT", DEFAULT_SMTP_PORT, minimum=1),
            smtp_user=env.get("RS_SMTP_USER") or None,
            smtp_password=env.get("RS_SENDER_EMAIL_PASSWORD") or None,
            smtp_timeout_s=timeout,
            checkin_time=checkin_time,
            watchdog_interval_minutes=_int(
                env, "RS_WATCHDOG_INTERVAL_MINUTES", DEFAULT_WATCHDOG_INTERVAL_MIN, minimum=1
            ),
            log_level=env.get("RS_LOG_LEVEL", "INFO").upper(),
        )

    def require_credentials(self) -> None:
        """A real SMTP host needs a password; dev mode does not."""
        if not self.dev_mode and not self.smtp_password:
            raise ConfigError("RS_SENDER_EMAIL_PASSWORD is not set.")


def _int(env: Mapping[str, str], key: str, default: int, minimum: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {value}")
    return value
