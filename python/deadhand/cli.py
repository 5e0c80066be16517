"""
Deadhand CLI: validate everything up front, then run until signalled.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from dotenv import load_dotenv

from deadhand import __version__
from deadhand.config import Settings
from deadhand.errors import ConfigError
from deadhand.mailbox import parse_recipients, parse_sender
from deadhand.payload import load_payload
from deadhand.service import DeadManSwitch

logger = logging.getLogger("deadhand")

EXIT_OK = 0
EXIT_CONFIG = 1


class ArgumentParser(argparse.ArgumentParser):
    """Usage errors are startup validation failures: exit 1, not 2."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_CONFIG, f"ERROR: {message}\n")


def build_parser() -> ArgumentParser:
    ap = ArgumentParser(
        prog="deadhand",
        description="Dead man's switch: mails a secret to recipients "
                    "if no heartbeat arrives in time.",
    )
    ap.add_argument("payload", help="File holding the secret to disclose")
    ap.add_argument("sender", help="Sender address (also receives check-in mails)")
    ap.add_argument("recipients", nargs="+", help="Recipient addresses")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def setup_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level, logging.INFO),
        format="[%(name)s] %(levelname)s %(message)s",
    )


def load(argv: Optional[List[str]] = None) -> DeadManSwitch:
    """Parse and validate arguments and environment. Raises ConfigError."""
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    sender = parse_sender(args.sender)
    recipients = parse_recipients(args.recipients)
    payload = load_payload(args.payload)
    settings.require_credentials()
    setup_logging(settings.log_level)
    return DeadManSwitch(settings, sender, recipients, payload)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    try:
        switch = load(argv)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG

    try:
        switch.start()
    except OSError as e:
        s = switch.settings
        print(f"ERROR: Failed to bind on {s.listen_host}:{s.listen_port}: {e}", file=sys.stderr)
        return EXIT_CONFIG

    def _sig(*_):
        # shutdown() waits for serve_forever, which runs on this thread
        threading.Thread(target=switch.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT, _sig)
    signal.signal(signal.SIGTERM, _sig)

    if switch.settings.dev_mode:
        logger.warning("no SMTP host configured, emails will be printed")
    logger.info(
        "armed: threshold %d days, %d recipients",
        switch.settings.activation_threshold_days, len(switch.activator.recipients),
    )
    try:
        switch.serve_forever()
    finally:
        switch.close()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
