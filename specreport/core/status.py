"""
Status reduction for test case attempts.

Pure functions over the ordered list of raw attempt outcomes. Nothing here
raises on unexpected runner data: unknown outcome kinds classify as failed so
a report can always be produced.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum

from .model import CaseOutcome

SKIP_KINDS = frozenset({"skipped", "todo", "pending", "disabled"})


class CaseState(StrEnum):
    """Coarse state of a test case, used for aggregate counts."""

    FAILED = "failed"
    PASSED = "passed"
    PENDING = "pending"
    SKIPPED = "skipped"


class ExpectedStatus(StrEnum):
    """Status used for pass/fail gating."""

    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timedOut"
    SKIPPED = "skipped"
    INTERRUPTED = "interrupted"


def _expected_for(kind: str) -> ExpectedStatus:
    if kind in SKIP_KINDS:
        return ExpectedStatus.SKIPPED
    if kind == "passed":
        return ExpectedStatus.PASSED
    return ExpectedStatus.FAILED


def to_case_state(kind: str) -> CaseState:
    """Map one runner outcome kind to a coarse state."""
    if kind == "passed":
        return CaseState.PASSED
    if kind in SKIP_KINDS:
        return CaseState.PENDING
    return CaseState.FAILED


def raw_status(attempts: Sequence[CaseOutcome]) -> ExpectedStatus:
    """Expected status across all attempts.

    Uniform attempts map directly. Mixed attempts mean the test needed a
    retry, which never counts as a clean pass.
    """
    if not attempts:
        return ExpectedStatus.SKIPPED

    first = attempts[0].status
    if all(attempt.status == first for attempt in attempts):
        return _expected_for(first)

    return ExpectedStatus.FAILED


def coarse_status(attempts: Sequence[CaseOutcome]) -> CaseState:
    """Coarse state taken from the final attempt."""
    if not attempts:
        return CaseState.PENDING
    return to_case_state(attempts[-1].status)


def attempt_status(attempt: CaseOutcome) -> ExpectedStatus:
    return raw_status((attempt,))


def is_flaky(attempts: Sequence[CaseOutcome]) -> bool:
    """True when the test failed at least once and passed on its last attempt."""
    return len(attempts) > 1 and attempts[-1].status == "passed"


def retries(attempts: Sequence[CaseOutcome]) -> int:
    # Backend numbering counts one past the number of recorded attempts.
    return len(attempts) + 1
