"""
Normalized error value delivered to clients.

``NormalizedError`` is what crosses the session boundary: a kind, a message
that is safe to show, and the retriable hint derived from the kind.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .error_kind import ErrorKind


@dataclass(frozen=True)
class NormalizedError:
    """Provider-independent description of a failed request."""

    kind: ErrorKind
    message: str
    retriable: bool = False

    @classmethod
    def of(cls, kind: ErrorKind, message: str) -> "NormalizedError":
        """Build an error whose ``retriable`` flag follows the kind."""
        return cls(kind=kind, message=message, retriable=kind.retriable)

    def to_wire(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


__all__ = ["NormalizedError"]
