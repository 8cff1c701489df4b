"""Normalized stream events.

A stream is a sequence of ``chunk`` and ``usage`` events closed by exactly
one terminal event (``done``, ``error`` or ``cancelled``). Adapters produce
chunk/usage/done/error; ``cancelled`` is only ever produced by a session.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import NormalizedError
from ..models import UsageStats


class EventType(str, Enum):
    CHUNK = "chunk"
    USAGE = "usage"
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (EventType.DONE, EventType.ERROR, EventType.CANCELLED)

    @property
    def wire_type(self) -> str:
        return f"chat_{self.value}"


class DeltaKind(str, Enum):
    TEXT = "text"
    THINKING = "thinking"


@dataclass(frozen=True)
class StreamEvent:
    """One normalized output unit.

    Attributes:
        type: Event variant.
        content: Delta text for ``chunk`` events.
        delta_kind: ``text`` or ``thinking`` for ``chunk`` events.
        usage: Token counts for ``usage`` events (a private copy).
        error: Normalized failure for ``error`` events.
        finish_reason: Upstream stop reason for ``done`` events (logged only).
    """

    type: EventType
    content: Optional[str] = None
    delta_kind: Optional[DeltaKind] = None
    usage: Optional[UsageStats] = None
    error: Optional[NormalizedError] = None
    finish_reason: Optional[str] = None

    @classmethod
    def chunk(cls, content: str, kind: DeltaKind = DeltaKind.TEXT) -> "StreamEvent":
        return cls(type=EventType.CHUNK, content=content, delta_kind=kind)

    @classmethod
    def usage_of(cls, stats: UsageStats) -> "StreamEvent":
        snapshot = UsageStats(input_tokens=stats.input_tokens, output_tokens=stats.output_tokens)
        return cls(type=EventType.USAGE, usage=snapshot)

    @classmethod
    def done(cls, finish_reason: Optional[str] = None) -> "StreamEvent":
        return cls(type=EventType.DONE, finish_reason=finish_reason)

    @classmethod
    def failed(cls, error: NormalizedError) -> "StreamEvent":
        return cls(type=EventType.ERROR, error=error)

    @classmethod
    def cancelled(cls) -> "StreamEvent":
        return cls(type=EventType.CANCELLED)

    @property
    def terminal(self) -> bool:
        return self.type.terminal

    def to_wire(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Render the client-facing JSON object.

        ``request_id`` is included for multiplexed connections and omitted on
        single-shot streams.
        """
        payload: Dict[str, Any] = {"type": self.type.wire_type}
        if request_id is not None:
            payload["requestId"] = request_id
        if self.type is EventType.CHUNK:
            payload["content"] = self.content or ""
            payload["deltaKind"] = (self.delta_kind or DeltaKind.TEXT).value
        elif self.type is EventType.USAGE and self.usage is not None:
            payload["usage"] = self.usage.to_dict()
        elif self.type is EventType.ERROR and self.error is not None:
            payload["error"] = self.error.to_wire()
        return payload


__all__ = ["EventType", "DeltaKind", "StreamEvent"]
