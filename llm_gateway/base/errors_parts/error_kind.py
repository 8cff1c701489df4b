"""
Normalized gateway error kinds (taxonomy).

Defines the `ErrorKind` enumeration shared by adapters, sessions and the
connection layer. Values are the exact strings written to clients in the
``error.kind`` field and are considered a stable public contract.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Enumerated failure categories visible to clients."""

    INVALID_REQUEST = "InvalidRequest"
    AUTH_FAILURE = "AuthFailure"
    RATE_LIMITED = "RateLimited"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    CONTENT_POLICY = "ContentPolicy"
    UNKNOWN_MODEL = "UnknownModel"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    INTERNAL = "Internal"

    @property
    def retriable(self) -> bool:
        """Whether a fresh attempt of the same request may succeed."""
        return self in (ErrorKind.RATE_LIMITED, ErrorKind.UPSTREAM_UNAVAILABLE)


__all__ = ["ErrorKind"]
