"""
Submission State
TypedDict recording one pass of a report through compose → validate → submit.

States:
    composed → validating → rejected                  (terminal)
                          → validated → submitting → acknowledged_remote  (terminal)
                                                   → acknowledged_queued  (terminal)
                                                   → failed               (terminal)
"""
from typing import List, Literal, Optional, TypedDict

SubmissionState = Literal[
    "composed",
    "validating",
    "rejected",
    "validated",
    "submitting",
    "acknowledged_remote",
    "acknowledged_queued",
    "failed",
]

TERMINAL_STATES = frozenset({"rejected", "acknowledged_remote", "acknowledged_queued", "failed"})

# Allowed successor states
TRANSITIONS: dict[str, frozenset] = {
    "composed":   frozenset({"validating"}),
    "validating": frozenset({"rejected", "validated"}),
    "validated":  frozenset({"submitting"}),
    "submitting": frozenset({"acknowledged_remote", "acknowledged_queued", "failed"}),
}


class SubmissionAttempt(TypedDict):
    report_id: Optional[str]
    states: List[SubmissionState]
    reason: str


def new_attempt() -> SubmissionAttempt:
    return {"report_id": None, "states": ["composed"], "reason": ""}


def advance(attempt: SubmissionAttempt, state: SubmissionState) -> SubmissionAttempt:
    """Append a state, refusing transitions the machine does not allow."""
    current = attempt["states"][-1]
    if state not in TRANSITIONS.get(current, frozenset()):
        raise ValueError(f"Illegal submission transition {current} -> {state}")
    attempt["states"].append(state)
    return attempt


def is_terminal(attempt: SubmissionAttempt) -> bool:
    return attempt["states"][-1] in TERMINAL_STATES
