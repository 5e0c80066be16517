"""Tests for deadhand.cli and deadhand.service modules."""

import io
import os
import tempfile
import threading
import unittest
import urllib.request
from unittest.mock import patch

from deadhand import cli
from deadhand.config import Settings
from deadhand.mailbox import parse_mailbox, parse_sender
from deadhand.payload import SecretPayload
from deadhand.service import DeadManSwitch
from deadhand.simulate import RecordingNotifier

DEV_ENV = {"RS_SMTP_HOST": "", "RS_LOG_LEVEL": "WARNING"}


@patch("deadhand.cli.load_dotenv")
class TestStartupValidation(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.payload = os.path.join(self.tmpdir.name, "data.txt")
        with open(self.payload, "w", encoding="utf-8") as f:
            f.write("secret\n")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def run_main(self, argv, env=DEV_ENV):
        stderr = io.StringIO()
        with patch.dict(os.environ, env, clear=True), patch("sys.stderr", stderr):
            try:
                code = cli.main(argv)
            except SystemExit as e:
                code = e.code
        return code, stderr.getvalue()

    def test_missing_arguments(self, _dotenv) -> None:
        code, err = self.run_main([self.payload, "me@example.com"])
        self.assertEqual(code, 1)
        self.assertIn("ERROR", err)

    def test_invalid_sender(self, _dotenv) -> None:
        code, err = self.run_main([self.payload, "not-an-email", "you@example.com"])
        self.assertEqual(code, 1)
        self.assertIn("Sender email is invalid", err)

    def test_invalid_recipient(self, _dotenv) -> None:
        code, err = self.run_main([self.payload, "me@example.com", "ok@example.com", "bad"])
        self.assertEqual(code, 1)
        self.assertIn("Recipient email is invalid", err)

    def test_unreadable_payload(self, _dotenv) -> None:
        missing = os.path.join(self.tmpdir.name, "missing.txt")
        code, _ = self.run_main([missing, "me@example.com", "you@example.com"])
        self.assertEqual(code, 1)

    def test_empty_payload(self, _dotenv) -> None:
        with open(self.payload, "w", encoding="utf-8") as f:
            f.write("")
        code, err = self.run_main([self.payload, "me@example.com", "you@example.com"])
        self.assertEqual(code, 1)
        self.assertIn("empty", err)

    def test_missing_password(self, _dotenv) -> None:
        code, err = self.run_main(
            [self.payload, "me@example.com", "you@example.com"], env={}
        )
        self.assertEqual(code, 1)
        self.assertIn("RS_SENDER_EMAIL_PASSWORD", err)

    def test_bad_threshold(self, _dotenv) -> None:
        env = dict(DEV_ENV, RS_ACTIVATION_THRESHOLD="soon")
        code, _ = self.run_main([self.payload, "me@example.com", "you@example.com"], env=env)
        self.assertEqual(code, 1)

    def test_load_builds_switch(self, _dotenv) -> None:
        env = dict(DEV_ENV, RS_ACTIVATION_THRESHOLD="2")
        with patch.dict(os.environ, env, clear=True):
            switch = cli.load([self.payload, "me@example.com", "a@example.com", "b@example.com"])
        self.assertEqual(switch.watchdog.threshold_days, 2)
        self.assertEqual(len(switch.activator.recipients), 2)
        self.assertEqual(switch.notifier.sender.address, "me@example.com")
        self.assertTrue(switch.state.armed)


class TestService(unittest.TestCase):
    def test_start_serve_shutdown(self) -> None:
        settings = Settings.from_env({"RS_LISTEN_HOST": "127.0.0.1", "RS_LISTEN_PORT": "0"})
        sender = parse_sender("me@example.com")
        switch = DeadManSwitch(
            settings, sender, [parse_mailbox("you@example.com")],
            SecretPayload(text="secret", source="test"),
            notifier=RecordingNotifier(sender),
        )
        switch.start()
        server = threading.Thread(target=switch.serve_forever, daemon=True)
        server.start()
        try:
            host, port = switch.address
            token = switch.state.secret_token
            with urllib.request.urlopen(
                f"http://{host}:{port}/heartbeat?token={token}", timeout=5
            ) as r:
                self.assertEqual(r.status, 200)
            self.assertEqual(
                sorted(t.name for t in switch.tasks), ["checkin", "watchdog"]
            )
        finally:
            switch.shutdown()
            server.join(timeout=5)
            switch.close()
        self.assertFalse(server.is_alive())
        self.assertTrue(all(not t.is_alive() for t in switch.tasks))


if __name__ == "__main__":
    unittest.main()
