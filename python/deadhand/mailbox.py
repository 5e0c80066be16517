"""
Deadhand mailboxes: email identities validated once at startup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from email.utils import formataddr, parseaddr
from typing import Iterable, List, Optional

from deadhand.errors import ConfigError

SENDER_DISPLAY_NAME = "Deadhand"

_ADDRESS_RE = re.compile(r"^[^@\s<>,;]+@[^@\s<>,;]+\.[^@\s<>,;]+$")


@dataclass(frozen=True)
class Mailbox:
    """A validated email address with an optional display name."""
    address: str
    display_name: Optional[str] = None

    def __str__(self) -> str:
        return formataddr((self.display_name or "", self.address))


def parse_mailbox(raw: str, display_name: Optional[str] = None, role: str = "email") -> Mailbox:
    """
    Parse 'user@example.com' or 'Name <user@example.com>' into a Mailbox.

    Raises ConfigError if the address is not usable. display_name, when
    given, replaces any name found in raw.
    """
    text = (raw or "").strip()
    if not text or "\n" in text or "\r" in text:
        raise ConfigError(f"{role} is invalid: {raw!r}")
    name, address = parseaddr(text)
    if "<" not in text and address != text:
        # parseaddr silently repairs some malformed bare addresses
        raise ConfigError(f"{role} is invalid: {raw}")
    if not address or not _ADDRESS_RE.match(address):
        raise ConfigError(f"{role} is invalid: {raw}")
    if not address.isascii():
        # SMTP headers cannot carry it; catch that now, not at send time
        raise ConfigError(f"{role} must be ASCII: {raw}")
    mailbox = Mailbox(address=address, display_name=display_name or name or None)
    try:
        str(mailbox)
    except (UnicodeError, ValueError) as e:
        raise ConfigError(f"{role} cannot be encoded: {raw}: {e}") from e
    return mailbox


def parse_sender(raw: str) -> Mailbox:
    return parse_mailbox(raw, display_name=SENDER_DISPLAY_NAME, role="Sender email")


def parse_recipients(raws: Iterable[str]) -> List[Mailbox]:
    """Parse every recipient; the first bad one aborts startup."""
    recipients = [parse_mailbox(r, role="Recipient email") for r in raws]
    if not recipients:
        raise ConfigError("at least one recipient email is required")
    return recipients
