"""Bounded-attempt state machine shared by agent and action retries.

::

    PENDING -> RUNNING -> SUCCEEDED
                       -> FAILED -> PENDING (next attempt)
                                 -> EXHAUSTED
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class AttemptState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


TERMINAL_STATES = frozenset({AttemptState.SUCCEEDED, AttemptState.EXHAUSTED})


def next_attempt_state(
    state: AttemptState,
    attempt: int,
    max_attempts: int,
    succeeded: Optional[bool] = None,
) -> AttemptState:
    """Advance by one transition. ``succeeded`` is required when leaving RUNNING."""
    if state in TERMINAL_STATES:
        raise ValueError(f"{state.value} is terminal")
    if state == AttemptState.PENDING:
        return AttemptState.RUNNING
    if state == AttemptState.RUNNING:
        if succeeded is None:
            raise ValueError("a running attempt needs an outcome to transition")
        return AttemptState.SUCCEEDED if succeeded else AttemptState.FAILED
    if state == AttemptState.FAILED:
        return AttemptState.PENDING if attempt < max_attempts else AttemptState.EXHAUSTED
    raise ValueError(f"Unhandled attempt state: {state}")
