"""
Deadhand error types.

Configuration problems are fatal at startup; delivery problems are logged
and the owning timer carries on.
"""

from __future__ import annotations


class DeadhandError(Exception):
    """Base class for all deadhand errors."""


class ConfigError(DeadhandError):
    """Invalid or missing startup configuration."""


class DeliveryError(DeadhandError):
    """An outbound email could not be delivered."""
