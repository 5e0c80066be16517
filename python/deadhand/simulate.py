#!/usr/bin/env python3
"""
Deadhand model simulation: drives a switch on a manual clock through the
core scenarios and checks invariants after every step.

Usage: python -m deadhand.simulate
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from deadhand.activator import Activator
from deadhand.checkin import CheckinEmailer
from deadhand.clock import ManualClock
from deadhand.errors import DeliveryError
from deadhand.invariants import InvariantResult, check_all_invariants
from deadhand.mailbox import Mailbox, parse_mailbox, parse_sender
from deadhand.notify import Notifier, SMTPConfig
from deadhand.payload import SecretPayload
from deadhand.receiver import HeartbeatReceiver
from deadhand.state import SwitchState
from deadhand.watchdog import Watchdog


@dataclass(frozen=True)
class SentEmail:
    to: Mailbox
    subject: str
    body: str
    html: bool


class RecordingNotifier(Notifier):
    """Notifier that records messages instead of sending them."""

    def __init__(self, sender: Mailbox, fail_for: Iterable[str] = ()) -> None:
        super().__init__(SMTPConfig(host=None, port=0, user=None, password=None, sender=sender))
        self.fail_for: Set[str] = set(fail_for)
        self.sent: List[SentEmail] = []
        self.attempts: List[Mailbox] = []

    def send_email(self, to: Mailbox, subject: str, body: str, html: bool = False) -> None:
        self.attempts.append(to)
        if to.address in self.fail_for:
            raise DeliveryError(f"simulated failure for {to.address}")
        self.sent.append(SentEmail(to, subject, body, html))


@dataclass
class SimulationFrame:
    step: int
    action: str
    invariant_results: List[InvariantResult]

    @property
    def broken(self) -> List[str]:
        return [r.name for r in self.invariant_results if not r.passed]

    def __str__(self) -> str:
        mark = "ok" if not self.broken else "BROKEN " + ", ".join(self.broken)
        return f"{self.step:>3}  {self.action:<48} [{mark}]"


class Simulator:
    """Model simulator for one switch."""

    def __init__(self, threshold_days: int = 1, recipients: Iterable[str] = ("a@example.com", "b@example.com"),
                 fail_for: Iterable[str] = ()) -> None:
        self.clock = ManualClock()
        self.state = SwitchState(clock=self.clock)
        self.notifier = RecordingNotifier(parse_sender("owner@example.com"), fail_for=fail_for)
        self.payload = SecretPayload(text="the secret", source="<simulation>")
        self.receiver = HeartbeatReceiver(self.state)
        self.checkin = CheckinEmailer(self.state, self.notifier, "http://localhost:6969")
        self.activator = Activator(self.notifier, [parse_mailbox(r) for r in recipients])
        self.watchdog = Watchdog(self.state, self.activator, self.payload, threshold_days)
        self.frames: List[SimulationFrame] = []
        self.step = 0

    def _record_frame(self, action: str) -> SimulationFrame:
        _, _, results = check_all_invariants(self.watchdog)
        frame = SimulationFrame(step=self.step, action=action, invariant_results=results)
        self.frames.append(frame)
        self.step += 1
        return frame

    def tick(self, **delta: float) -> SimulationFrame:
        """Advance time."""
        now = self.clock.advance(**delta)
        return self._record_frame(f"tick({delta}) → now={now.isoformat()}")

    def heartbeat(self, token: Optional[str] = None) -> SimulationFrame:
        if token is None:
            token = self.state.secret_token
        result = self.receiver.handle(token)
        return self._record_frame(f"heartbeat → {result.message}")

    def run_checkin(self) -> SimulationFrame:
        ok = self.checkin.send_checkin()
        return self._record_frame(f"checkin → sent={ok}")

    def run_watchdog(self) -> SimulationFrame:
        outcome = self.watchdog.tick()
        return self._record_frame(f"watchdog → {outcome.value}")

    @property
    def failures(self) -> List[InvariantResult]:
        return [r for f in self.frames for r in f.invariant_results if not r.passed]

    def activation_emails(self) -> List[SentEmail]:
        return [m for m in self.notifier.sent if m.body == self.payload.text]


def run_silence_scenario() -> Simulator:
    """Threshold 1 day, 25 hours of silence: exactly one activation."""
    sim = Simulator(threshold_days=1)
    print(sim.run_watchdog())
    print(sim.tick(hours=25))
    print(sim.run_watchdog())
    print(sim.tick(hours=1))
    print(sim.run_watchdog())
    print(f"  Note: {len(sim.activation_emails())} activation emails sent")
    return sim


def run_heartbeat_scenario() -> Simulator:
    """Heartbeat at hour 23 pushes the deadline out by a full day."""
    sim = Simulator(threshold_days=1)
    print(sim.tick(hours=23))
    print(sim.run_checkin())
    print(sim.heartbeat())
    print(sim.tick(hours=23))
    print(sim.run_watchdog())
    print(sim.tick(hours=1))
    print(sim.run_watchdog())
    return sim


def run_bad_token_scenario() -> Simulator:
    sim = Simulator(threshold_days=1)
    print(sim.heartbeat("not-the-token"))
    print(f"  Note: {len(sim.notifier.sent)} emails sent")
    return sim


def run_partial_delivery_scenario() -> Simulator:
    """First recipient fails, second still gets the payload."""
    sim = Simulator(threshold_days=1, fail_for=["a@example.com"])
    print(sim.tick(days=1))
    print(sim.run_watchdog())
    report = sim.watchdog.last_report
    if report is not None:
        print(f"  Note: delivered={len(report.delivered)}, errors={len(report.errors)}")
    return sim


def main() -> None:
    scenarios = [
        ("SILENCE PAST THRESHOLD", run_silence_scenario),
        ("HEARTBEAT BEFORE DEADLINE", run_heartbeat_scenario),
        ("WRONG TOKEN", run_bad_token_scenario),
        ("PARTIAL DELIVERY", run_partial_delivery_scenario),
    ]
    failures = 0
    for title, fn in scenarios:
        print("=" * 60)
        print(title)
        print("=" * 60)
        sim = fn()
        failures += len(sim.failures)
        for r in sim.failures:
            print(f"  ✗ {r.name}: {r.message}")
        print()
    if failures == 0:
        print("✓ All invariants maintained throughout simulation")
    else:
        print(f"✗ {failures} invariant violations detected")


if __name__ == "__main__":
    main()
