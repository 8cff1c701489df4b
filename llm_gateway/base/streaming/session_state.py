"""Lifecycle states of a stream session."""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet


class SessionState(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.FAILED, SessionState.CANCELLED)

    def can_move_to(self, target: "SessionState") -> bool:
        return target in _ALLOWED[self]


_ALLOWED: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.PENDING: frozenset({SessionState.STREAMING, SessionState.FAILED, SessionState.CANCELLED}),
    SessionState.STREAMING: frozenset({SessionState.COMPLETED, SessionState.FAILED, SessionState.CANCELLED}),
    SessionState.COMPLETED: frozenset(),
    SessionState.FAILED: frozenset(),
    SessionState.CANCELLED: frozenset(),
}


__all__ = ["SessionState"]
