"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `llm_gateway.base.errors` for the stable surface.
"""

from .error_kind import ErrorKind
from .normalized_error import NormalizedError
from .gateway_error import GatewayError
from .classification import classify_failure
from .normalizer import ErrorNormalizer, normalize_error

__all__ = [
    "ErrorKind",
    "NormalizedError",
    "GatewayError",
    "classify_failure",
    "ErrorNormalizer",
    "normalize_error",
]
