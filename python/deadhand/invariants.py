"""
Deadhand invariants: runtime checks on a live switch.

- The last heartbeat is never in the future
- Activation happens at most once
- The switch is disarmed exactly when an activation has happened
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from deadhand.watchdog import Watchdog


@dataclass
class InvariantResult:
    """Result of an invariant check."""
    name: str
    passed: bool
    message: str
    evidence: Optional[dict] = None


def check_heartbeat_not_future(watchdog: Watchdog) -> InvariantResult:
    snap = watchdog.state.snapshot()
    if snap.last_heartbeat <= snap.taken_at:
        return InvariantResult("inv_heartbeat_not_future", True, "Last heartbeat is in the past")
    return InvariantResult(
        "inv_heartbeat_not_future", False, "Last heartbeat is in the future",
        evidence={"last_heartbeat": snap.last_heartbeat.isoformat(),
                  "now": snap.taken_at.isoformat()},
    )


def check_single_activation(watchdog: Watchdog) -> InvariantResult:
    n = watchdog.activations
    if n <= 1:
        return InvariantResult("inv_single_activation", True, f"{n} activation(s)")
    return InvariantResult(
        "inv_single_activation", False, f"Activated {n} times",
        evidence={"activations": n},
    )


def check_armed_matches_activation(watchdog: Watchdog) -> InvariantResult:
    armed = watchdog.state.armed
    fired = watchdog.activations > 0
    if armed != fired:
        return InvariantResult("inv_armed_matches", True, "Armed flag matches activations")
    return InvariantResult(
        "inv_armed_matches", False,
        f"Mismatch: armed={armed}, activations={watchdog.activations}",
        evidence={"armed": armed, "activations": watchdog.activations},
    )


def check_all_invariants(watchdog: Watchdog) -> Tuple[int, int, List[InvariantResult]]:
    """Run all invariant checks. Returns (passed, failed, results)."""
    results = [
        check_heartbeat_not_future(watchdog),
        check_single_activation(watchdog),
        check_armed_matches_activation(watchdog),
    ]
    passed = sum(1 for r in results if r.passed)
    return passed, len(results) - passed, results
