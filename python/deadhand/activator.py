"""
Deadhand activator: discloses the payload to every recipient.

Best-effort: one failed recipient does not stop the others, since partial
disclosure beats none. Errors are collected in the report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from deadhand.errors import DeliveryError
from deadhand.mailbox import Mailbox
from deadhand.notify import Notifier
from deadhand.payload import SecretPayload

logger = logging.getLogger(__name__)

ACTIVATION_SUBJECT = "Deadhand ACTIVATED"


@dataclass
class ActivationReport:
    delivered: List[Mailbox] = field(default_factory=list)
    errors: List[Tuple[Mailbox, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.errors)


class Activator:
    """Sends the secret payload. Called at most once per process."""

    def __init__(self, notifier: Notifier, recipients: Sequence[Mailbox]) -> None:
        self.notifier = notifier
        self.recipients = list(recipients)

    def activate(self, payload: SecretPayload) -> ActivationReport:
        report = ActivationReport()
        for rec in self.recipients:
            try:
                self.notifier.send_email(rec, ACTIVATION_SUBJECT, payload.text)
            except DeliveryError as e:
                logger.error("activation email to %s failed: %s", rec.address, e)
                report.errors.append((rec, e))
            except Exception as e:
                # a broken notifier must not cost the remaining recipients
                logger.exception("activation email to %s failed", rec.address)
                report.errors.append((rec, e))
            else:
                report.delivered.append(rec)
        logger.warning(
            "activation finished: %d delivered, %d failed",
            len(report.delivered), len(report.errors),
        )
        return report
