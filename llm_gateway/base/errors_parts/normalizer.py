"""
ErrorNormalizer: single entry point from raw failure to ``NormalizedError``.

Adapters, sessions and the connection layer all route failures through
:func:`normalize_error` (or an :class:`ErrorNormalizer` instance) so clients
only ever observe the shared taxonomy. Raw upstream detail is written to the
server log and never copied into the client-facing message.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from ..log_support import LogContext
from .classification import classify_failure
from .error_kind import ErrorKind
from .gateway_error import GatewayError
from .normalized_error import NormalizedError

SAFE_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_REQUEST: "the upstream provider rejected the request",
    ErrorKind.AUTH_FAILURE: "the upstream provider rejected the configured credentials",
    ErrorKind.RATE_LIMITED: "the upstream provider rate limit was reached",
    ErrorKind.UPSTREAM_UNAVAILABLE: "the upstream provider is unavailable",
    ErrorKind.CONTENT_POLICY: "the request was blocked by the provider content policy",
    ErrorKind.UNKNOWN_MODEL: "the upstream provider does not recognize the model",
    ErrorKind.CAPACITY_EXCEEDED: "too many concurrent requests",
    ErrorKind.INTERNAL: "internal gateway error",
}


class ErrorNormalizer:
    """Map provider-specific failures into :class:`NormalizedError` values."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger

    def normalize(self, provider: Optional[str], raw: BaseException | NormalizedError) -> NormalizedError:
        """Return the normalized view of ``raw`` for ``provider``.

        ``GatewayError`` instances keep their own message since it is
        produced locally; anything else gets the fixed message of its kind.
        """
        if isinstance(raw, NormalizedError):
            return raw
        if isinstance(raw, GatewayError):
            return raw.normalized()
        kind = classify_failure(provider, raw)
        self._log(provider, raw, kind)
        return NormalizedError.of(kind, SAFE_MESSAGES[kind])

    def to_gateway_error(
        self,
        provider: Optional[str],
        raw: BaseException,
        *,
        model: Optional[str] = None,
    ) -> GatewayError:
        """Wrap ``raw`` into a :class:`GatewayError` (passthrough when already one)."""
        if isinstance(raw, GatewayError):
            return raw
        normalized = self.normalize(provider, raw)
        return GatewayError(
            kind=normalized.kind,
            message=normalized.message,
            provider=provider,
            model=model,
            raw=raw,
        )

    def _log(self, provider: Optional[str], raw: BaseException, kind: ErrorKind) -> None:
        if self._logger is None:
            return
        from ..logging import log_event

        log_event(
            self._logger,
            "error.normalized",
            LogContext(provider=provider),
            kind=kind.value,
            raw_type=type(raw).__name__,
            detail=str(raw)[:2000],
        )


_DEFAULT: Optional[ErrorNormalizer] = None


def get_normalizer() -> ErrorNormalizer:
    """Return the process-wide normalizer bound to the gateway logger."""
    global _DEFAULT  # noqa: PLW0603 - module cache
    if _DEFAULT is None:
        from ..logging import get_logger

        _DEFAULT = ErrorNormalizer(get_logger("gateway.errors"))
    return _DEFAULT


def normalize_error(provider: Optional[str], raw: BaseException | NormalizedError) -> NormalizedError:
    """Shortcut for ``get_normalizer().normalize(provider, raw)``."""
    return get_normalizer().normalize(provider, raw)


__all__ = ["ErrorNormalizer", "SAFE_MESSAGES", "get_normalizer", "normalize_error"]
