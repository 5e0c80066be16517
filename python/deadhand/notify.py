"""
Deadhand notification layer: SMTP-based email delivery.

Dev mode: prints recipient and subject to stdout when no SMTP host configured.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Optional

from deadhand.errors import DeliveryError
from deadhand.mailbox import Mailbox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SMTPConfig:
    """SMTP configuration. Set host=None for dev mode (print-only)."""
    host: Optional[str]
    port: int
    user: Optional[str]
    password: Optional[str] = field(repr=False)
    sender: Mailbox
    timeout: float = 20.0


class Notifier:
    """Email notifier using stdlib smtplib."""

    def __init__(self, smtp: SMTPConfig) -> None:
        self.smtp = smtp

    @property
    def sender(self) -> Mailbox:
        return self.smtp.sender

    def build_message(self, to: Mailbox, subject: str, body: str, html: bool = False) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = str(self.smtp.sender)
        msg["Reply-To"] = str(self.smtp.sender)
        msg["To"] = str(to)
        msg["Subject"] = subject
        msg.set_content(body, subtype="html" if html else "plain")
        return msg

    def send_email(self, to: Mailbox, subject: str, body: str, html: bool = False) -> None:
        """Send one email. Raises DeliveryError on any failure."""
        try:
            msg = self.build_message(to, subject, body, html=html)
        except (ValueError, TypeError) as e:
            raise DeliveryError(f"Failed to encode email to {to.address}: {e}") from e

        if not self.smtp.host:
            # bodies carry the reset token or the payload; never echo them
            print(f"--- EMAIL to={to}\nSUBJ: {subject}\n({len(body)} chars, body withheld)\n---")
            return

        if not self.smtp.password:
            raise DeliveryError("RS_SENDER_EMAIL_PASSWORD is not set.")

        user = self.smtp.user or self.smtp.sender.address
        try:
            with smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=self.smtp.timeout) as s:
                s.ehlo()
                if s.has_extn("starttls"):
                    s.starttls()
                    s.ehlo()
                s.login(user, self.smtp.password)
                s.send_message(msg)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            raise DeliveryError(f"Failed to send email to {to.address}: {e}") from e
        logger.debug("sent %r to %s", subject, to.address)
