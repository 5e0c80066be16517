"""Tests for deadhand.activator and deadhand.checkin modules."""

import unittest
import urllib.parse
from unittest.mock import patch

from deadhand.activator import Activator
from deadhand.checkin import CHECKIN_SUBJECT, CheckinEmailer, reset_url
from deadhand.errors import DeliveryError
from deadhand.mailbox import parse_mailbox, parse_sender
from deadhand.payload import SecretPayload
from deadhand.simulate import RecordingNotifier
from deadhand.state import SwitchState


class TestActivator(unittest.TestCase):
    def setUp(self) -> None:
        self.recipients = [parse_mailbox("first@example.com"), parse_mailbox("second@example.com")]
        self.payload = SecretPayload(text="secret", source="test")

    def test_all_delivered(self) -> None:
        notifier = RecordingNotifier(parse_sender("me@example.com"))
        report = Activator(notifier, self.recipients).activate(self.payload)
        self.assertTrue(report.ok)
        self.assertEqual(report.delivered, self.recipients)
        self.assertEqual(report.attempted, 2)

    def test_best_effort_after_first_failure(self) -> None:
        """First recipient fails, second is still attempted and delivered."""
        notifier = RecordingNotifier(parse_sender("me@example.com"), fail_for=["first@example.com"])
        report = Activator(notifier, self.recipients).activate(self.payload)

        self.assertFalse(report.ok)
        self.assertEqual(len(report.errors), 1)
        failed, err = report.errors[0]
        self.assertEqual(failed.address, "first@example.com")
        self.assertIsInstance(err, DeliveryError)
        self.assertEqual(notifier.attempts, self.recipients)
        self.assertEqual([m.to.address for m in notifier.sent], ["second@example.com"])

    def test_unexpected_error_does_not_stop_delivery(self) -> None:
        """A non-delivery exception for one recipient is recorded, the rest still go out."""
        notifier = RecordingNotifier(parse_sender("me@example.com"))
        record = notifier.send_email
        boom = UnicodeEncodeError("ascii", "é", 0, 1, "ordinal not in range(128)")

        def send_email(to, subject, body, html=False):
            if to.address == "first@example.com":
                notifier.attempts.append(to)
                raise boom
            record(to, subject, body, html=html)

        with patch.object(notifier, "send_email", side_effect=send_email):
            with self.assertLogs("deadhand.activator", level="ERROR"):
                report = Activator(notifier, self.recipients).activate(self.payload)

        self.assertEqual(notifier.attempts, self.recipients)
        self.assertEqual([m.address for m in report.delivered], ["second@example.com"])
        self.assertEqual(len(report.errors), 1)
        failed, err = report.errors[0]
        self.assertEqual(failed.address, "first@example.com")
        self.assertIs(err, boom)

    def test_all_fail(self) -> None:
        notifier = RecordingNotifier(
            parse_sender("me@example.com"),
            fail_for=["first@example.com", "second@example.com"],
        )
        report = Activator(notifier, self.recipients).activate(self.payload)
        self.assertEqual(len(report.errors), 2)
        self.assertEqual(report.delivered, [])


class TestCheckin(unittest.TestCase):
    def setUp(self) -> None:
        self.state = SwitchState(secret_token="abc-123_XYZ")
        self.sender = parse_sender("me@example.com")

    def test_reset_url(self) -> None:
        url = reset_url("https://switch.example.com/", "abc-123_XYZ")
        self.assertEqual(url, "https://switch.example.com/heartbeat?token=abc-123_XYZ")

    def test_sends_one_mail_to_operator(self) -> None:
        notifier = RecordingNotifier(self.sender)
        emailer = CheckinEmailer(self.state, notifier, "http://localhost:6969")
        self.assertTrue(emailer.send_checkin())

        self.assertEqual(len(notifier.sent), 1)
        mail = notifier.sent[0]
        self.assertEqual(mail.to, self.sender)
        self.assertEqual(mail.subject, CHECKIN_SUBJECT)
        self.assertTrue(mail.html)
        self.assertIn("http://localhost:6969/heartbeat?token=abc-123_XYZ", mail.body)

    def test_failure_is_reported_not_raised(self) -> None:
        notifier = RecordingNotifier(self.sender, fail_for=["me@example.com"])
        emailer = CheckinEmailer(self.state, notifier, "http://localhost:6969")
        before = self.state.snapshot()

        self.assertFalse(emailer.send_checkin())

        after = self.state.snapshot()
        self.assertEqual(before.last_heartbeat, after.last_heartbeat)
        self.assertTrue(after.armed)

    def test_token_is_url_encoded(self) -> None:
        url = reset_url("http://h", "a+b/c=")
        query = urllib.parse.urlsplit(url).query
        self.assertEqual(urllib.parse.parse_qs(query)["token"], ["a+b/c="])


if __name__ == "__main__":
    unittest.main()
