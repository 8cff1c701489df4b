"""
Error classification helpers mapping raw failures to ``ErrorKind`` values.

Implements transport detection, vendor error-code lookup, HTTP status
extraction and message heuristics as a last resort, so that exceptions from
any of the provider SDKs land in the same taxonomy.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import httpx

from .error_kind import ErrorKind
from .gateway_error import GatewayError

# SDK exception class names that denote a transport failure. The OpenAI and
# Anthropic SDKs define their own hierarchy that does not subclass httpx.
_TRANSPORT_ERROR_NAMES = frozenset({"APIConnectionError", "APITimeoutError"})


def _extract_status(exc: BaseException) -> Optional[int]:
    """Attempt to extract an HTTP status code from a provider exception.

    Supported attribute shapes (checked in order):
    - ``exc.status_code``
    - ``exc.status`` / ``exc.code`` when integral (google-genai uses ``code``)
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    for attr in ("status_code", "status", "code"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and not isinstance(val, bool) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


def _extract_vendor_codes(exc: BaseException) -> List[str]:
    """Collect lowercase vendor error identifiers in lookup order.

    Body-level ``error.code`` wins over ``error.type``; attribute-level strings
    (``code``, ``type``, ``status``) follow.
    """
    found: List[str] = []
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            for key in ("code", "type", "status"):
                val = err.get(key)
                if isinstance(val, str) and val:
                    found.append(val.lower())
    for attr in ("code", "type", "status"):
        val = getattr(exc, attr, None)
        if isinstance(val, str) and val:
            found.append(val.lower())
    return found


def is_transport_failure(exc: BaseException) -> bool:
    """Return True for connection refused, resets and timeouts."""
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, ConnectionError, httpx.TransportError)):
        return True
    return any(klass.__name__ in _TRANSPORT_ERROR_NAMES for klass in type(exc).__mro__)


_OPENAI_CODES: Dict[str, ErrorKind] = {
    "content_policy_violation": ErrorKind.CONTENT_POLICY,
    "content_filter": ErrorKind.CONTENT_POLICY,
    "model_not_found": ErrorKind.UNKNOWN_MODEL,
    "invalid_api_key": ErrorKind.AUTH_FAILURE,
    "insufficient_quota": ErrorKind.RATE_LIMITED,
    "rate_limit_exceeded": ErrorKind.RATE_LIMITED,
    "context_length_exceeded": ErrorKind.INVALID_REQUEST,
    "server_error": ErrorKind.UPSTREAM_UNAVAILABLE,
    "invalid_request_error": ErrorKind.INVALID_REQUEST,
}

_ANTHROPIC_CODES: Dict[str, ErrorKind] = {
    "overloaded_error": ErrorKind.UPSTREAM_UNAVAILABLE,
    "api_error": ErrorKind.UPSTREAM_UNAVAILABLE,
    "rate_limit_error": ErrorKind.RATE_LIMITED,
    "authentication_error": ErrorKind.AUTH_FAILURE,
    "permission_error": ErrorKind.AUTH_FAILURE,
    "not_found_error": ErrorKind.UNKNOWN_MODEL,
    "invalid_request_error": ErrorKind.INVALID_REQUEST,
    "request_too_large": ErrorKind.INVALID_REQUEST,
}

_GOOGLE_CODES: Dict[str, ErrorKind] = {
    "resource_exhausted": ErrorKind.RATE_LIMITED,
    "unavailable": ErrorKind.UPSTREAM_UNAVAILABLE,
    "deadline_exceeded": ErrorKind.UPSTREAM_UNAVAILABLE,
    "internal": ErrorKind.UPSTREAM_UNAVAILABLE,
    "permission_denied": ErrorKind.AUTH_FAILURE,
    "unauthenticated": ErrorKind.AUTH_FAILURE,
    "not_found": ErrorKind.UNKNOWN_MODEL,
    "invalid_argument": ErrorKind.INVALID_REQUEST,
    "failed_precondition": ErrorKind.INVALID_REQUEST,
}

# xAI and Groq speak the OpenAI error dialect.
_VENDOR_CODES: Dict[str, Dict[str, ErrorKind]] = {
    "openai": _OPENAI_CODES,
    "xai": _OPENAI_CODES,
    "groq": _OPENAI_CODES,
    "anthropic": _ANTHROPIC_CODES,
    "google": _GOOGLE_CODES,
}


_HTTP_STATUS_MAP: Dict[int, ErrorKind] = {
    400: ErrorKind.INVALID_REQUEST,
    401: ErrorKind.AUTH_FAILURE,
    403: ErrorKind.AUTH_FAILURE,
    404: ErrorKind.UNKNOWN_MODEL,
    408: ErrorKind.UPSTREAM_UNAVAILABLE,
    413: ErrorKind.INVALID_REQUEST,
    422: ErrorKind.INVALID_REQUEST,
    429: ErrorKind.RATE_LIMITED,
    500: ErrorKind.UPSTREAM_UNAVAILABLE,
    502: ErrorKind.UPSTREAM_UNAVAILABLE,
    503: ErrorKind.UPSTREAM_UNAVAILABLE,
    504: ErrorKind.UPSTREAM_UNAVAILABLE,
    529: ErrorKind.UPSTREAM_UNAVAILABLE,
}


_PATTERN_GROUPS = (
    (ErrorKind.CONTENT_POLICY, ("content policy", "content_filter", "safety")),
    (ErrorKind.RATE_LIMITED, ("rate limit", "quota", "too many requests")),
    (ErrorKind.UPSTREAM_UNAVAILABLE, ("timeout", "timed out", "connection", "overloaded", "unavailable")),
    (ErrorKind.AUTH_FAILURE, ("api key", "unauthorized", "forbidden", "authentication")),
    (ErrorKind.UNKNOWN_MODEL, ("model not found", "does not exist", "unknown model")),
    (ErrorKind.INVALID_REQUEST, ("invalid", "malformed", "validation")),
)


def _heuristic_from_message(msg: str) -> Optional[ErrorKind]:
    """Substring heuristic mapping for exceptions without structured codes."""
    for kind, patterns in _PATTERN_GROUPS:
        if any(p in msg for p in patterns):
            return kind
    return None


def classify_failure(provider: Optional[str], exc: BaseException) -> ErrorKind:
    """Classify an exception into a normalized :class:`ErrorKind`.

    Precedence:
        1. GatewayError passthrough.
        2. Transport failures (timeouts, refused or reset connections).
        3. Vendor error codes for the provider's dialect.
        4. HTTP status mapping.
        5. Substring heuristics.
        6. ``Internal`` fallback.
    """
    if isinstance(exc, GatewayError):
        return exc.kind
    if is_transport_failure(exc):
        return ErrorKind.UPSTREAM_UNAVAILABLE
    codes = _VENDOR_CODES.get((provider or "").lower(), {})
    for code in _extract_vendor_codes(exc):
        if code in codes:
            return codes[code]
    status = _extract_status(exc)
    if status is not None:
        if status in _HTTP_STATUS_MAP:
            return _HTTP_STATUS_MAP[status]
        if status >= 500:
            return ErrorKind.UPSTREAM_UNAVAILABLE
    kind = _heuristic_from_message(str(exc).lower())
    return kind if kind is not None else ErrorKind.INTERNAL


__all__ = [
    "classify_failure",
    "is_transport_failure",
    "_extract_status",
    "_extract_vendor_codes",
    "_HTTP_STATUS_MAP",
]
