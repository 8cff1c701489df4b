"""Unified gateway error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``llm_gateway.base.errors_parts`` to maintain a stable import path.
"""

from .errors_parts.error_kind import ErrorKind
from .errors_parts.normalized_error import NormalizedError
from .errors_parts.gateway_error import GatewayError
from .errors_parts.classification import classify_failure, is_transport_failure
from .errors_parts.normalizer import (
    SAFE_MESSAGES,
    ErrorNormalizer,
    get_normalizer,
    normalize_error,
)

__all__ = [
    "ErrorKind",
    "NormalizedError",
    "GatewayError",
    "classify_failure",
    "is_transport_failure",
    "SAFE_MESSAGES",
    "ErrorNormalizer",
    "get_normalizer",
    "normalize_error",
]
