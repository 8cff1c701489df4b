"""
Structured gateway error exception type.

Raised for local failures (validation, unknown model, capacity, missing
credentials) and used to wrap upstream exceptions once they have been
classified, so retry logic and sessions can reason about a single type.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_kind import ErrorKind
from .normalized_error import NormalizedError


@dataclass
class GatewayError(Exception):
    """Represents a classified failure with a client-safe message.

    Attributes:
        kind: Normalized :class:`ErrorKind` classification for the failure.
        message: Message that may be forwarded to the client verbatim.
        provider: Provider tag where the error originated, when known.
        model: Optional model identifier associated with the failure.
        raw: Optional original exception kept for server-side diagnostics.
    """

    kind: ErrorKind
    message: str
    provider: Optional[str] = None
    model: Optional[str] = None
    raw: Optional[BaseException] = None

    @property
    def retriable(self) -> bool:
        return self.kind.retriable

    def normalized(self) -> NormalizedError:
        """Return the client-facing view of this error."""
        return NormalizedError.of(self.kind, self.message)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.provider or '-'}:{self.model or '-'} {self.kind.value}: {self.message}"


__all__ = ["GatewayError"]
