"""
Deadhand secret payload: read once at startup, held in memory only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from deadhand.errors import ConfigError


@dataclass(frozen=True)
class SecretPayload:
    """The text disclosed on activation."""
    text: str = field(repr=False)
    source: str = ""

    def __len__(self) -> int:
        return len(self.text)


def load_payload(path: str | Path) -> SecretPayload:
    """Read the payload file. Unreadable or blank files are a ConfigError."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Invalid payload file {p}: {e}") from e
    if not text.strip():
        raise ConfigError(f"Payload file cannot be empty: {p}")
    return SecretPayload(text=text, source=str(p))
