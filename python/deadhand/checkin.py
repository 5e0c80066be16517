"""
Deadhand check-in emailer.

Once a day the operator gets a mail whose image beacon and link both hit
/heartbeat with the secret token. The mail itself never touches the switch
state; only a received heartbeat does.
"""

from __future__ import annotations

import html
import logging
import urllib.parse

from deadhand.errors import DeliveryError
from deadhand.notify import Notifier
from deadhand.state import SwitchState

logger = logging.getLogger(__name__)

CHECKIN_SUBJECT = "Deadhand Check In"


def reset_url(public_url: str, token: str) -> str:
    query = urllib.parse.urlencode({"token": token})
    return f"{public_url.rstrip('/')}/heartbeat?{query}"


def checkin_body(url: str) -> str:
    u = html.escape(url, quote=True)
    return (
        "<html><body>"
        f"<img src='{u}' width='1' height='1' alt=''>"
        "<h1>Checking in.</h1>"
        f"<p>If images are blocked, <a href='{u}'>confirm you are alive</a>.</p>"
        "</body></html>"
    )


class CheckinEmailer:
    """Sends the daily liveness-proof email to the operator's own mailbox."""

    def __init__(self, state: SwitchState, notifier: Notifier, public_url: str) -> None:
        self.state = state
        self.notifier = notifier
        self.public_url = public_url

    def send_checkin(self) -> bool:
        """Send one check-in mail. Failures are logged, never raised."""
        logger.info("sending check in email")
        body = checkin_body(reset_url(self.public_url, self.state.secret_token))
        try:
            self.notifier.send_email(self.notifier.sender, CHECKIN_SUBJECT, body, html=True)
        except DeliveryError as e:
            logger.error("check in email failed: %s", e)
            return False
        return True
