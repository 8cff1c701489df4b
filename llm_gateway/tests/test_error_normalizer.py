"""ErrorNormalizer and classification tests.

Failures are modelled with small exception classes carrying the attributes
the vendor SDKs expose (``status_code``, ``body``, ``code``), so no SDK is
needed to exercise the mapping.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from llm_gateway.base.errors import (
    SAFE_MESSAGES,
    ErrorKind,
    ErrorNormalizer,
    GatewayError,
    NormalizedError,
    classify_failure,
)


class _StatusError(Exception):
    def __init__(self, status_code: int, body=None, message: str = "upstream said no") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class APIConnectionError(Exception):
    """Name-compatible with the OpenAI/Anthropic SDK transport error."""


class _GoogleError(Exception):
    def __init__(self, code: int, status: str) -> None:
        super().__init__(f"{code} {status}")
        self.code = code
        self.status = status


@pytest.mark.parametrize(
    "kind, retriable",
    [
        (ErrorKind.RATE_LIMITED, True),
        (ErrorKind.UPSTREAM_UNAVAILABLE, True),
        (ErrorKind.INVALID_REQUEST, False),
        (ErrorKind.AUTH_FAILURE, False),
        (ErrorKind.CONTENT_POLICY, False),
        (ErrorKind.UNKNOWN_MODEL, False),
        (ErrorKind.CAPACITY_EXCEEDED, False),
        (ErrorKind.INTERNAL, False),
    ],
)
def test_only_rate_limit_and_unavailable_are_retriable(kind, retriable):
    assert kind.retriable is retriable  # nosec B101
    assert NormalizedError.of(kind, "m").retriable is retriable  # nosec B101


@pytest.mark.parametrize(
    "provider, exc, expected",
    [
        ("openai", asyncio.TimeoutError(), ErrorKind.UPSTREAM_UNAVAILABLE),
        ("openai", httpx.ConnectError("refused"), ErrorKind.UPSTREAM_UNAVAILABLE),
        ("anthropic", APIConnectionError("reset"), ErrorKind.UPSTREAM_UNAVAILABLE),
        ("openai", _StatusError(401), ErrorKind.AUTH_FAILURE),
        ("openai", _StatusError(404), ErrorKind.UNKNOWN_MODEL),
        ("groq", _StatusError(429), ErrorKind.RATE_LIMITED),
        ("xai", _StatusError(503), ErrorKind.UPSTREAM_UNAVAILABLE),
        ("anthropic", _StatusError(529), ErrorKind.UPSTREAM_UNAVAILABLE),
        ("openai", _StatusError(599), ErrorKind.UPSTREAM_UNAVAILABLE),
        (
            "openai",
            _StatusError(400, body={"error": {"code": "content_policy_violation"}}),
            ErrorKind.CONTENT_POLICY,
        ),
        (
            "anthropic",
            _StatusError(500, body={"error": {"type": "overloaded_error"}}),
            ErrorKind.UPSTREAM_UNAVAILABLE,
        ),
        ("anthropic", _StatusError(400, body={"error": {"type": "rate_limit_error"}}), ErrorKind.RATE_LIMITED),
        ("google", _GoogleError(429, "RESOURCE_EXHAUSTED"), ErrorKind.RATE_LIMITED),
        ("google", _GoogleError(400, "INVALID_ARGUMENT"), ErrorKind.INVALID_REQUEST),
        ("openai", RuntimeError("Rate limit reached for requests"), ErrorKind.RATE_LIMITED),
        ("openai", RuntimeError("boom"), ErrorKind.INTERNAL),
    ],
)
def test_classification(provider, exc, expected):
    assert classify_failure(provider, exc) is expected  # nosec B101


def test_normalizer_never_forwards_raw_detail(caplog):
    logger = logging.getLogger("llm_gateway_tests.errors")
    normalizer = ErrorNormalizer(logger)
    raw = _StatusError(429, message="org-123 exceeded quota for sk-live-abc")

    with caplog.at_level(logging.INFO, logger="llm_gateway_tests.errors"):
        error = normalizer.normalize("openai", raw)

    assert error.kind is ErrorKind.RATE_LIMITED  # nosec B101
    assert error.message == SAFE_MESSAGES[ErrorKind.RATE_LIMITED]  # nosec B101
    assert "org-123" not in error.message  # nosec B101
    assert any("org-123" in rec.getMessage() for rec in caplog.records)  # nosec B101


def test_gateway_error_passthrough_keeps_local_message():
    local = GatewayError(kind=ErrorKind.INVALID_REQUEST, message="temperature 5 is outside [0, 2]")

    normalized = ErrorNormalizer().normalize("openai", local)

    assert normalized.kind is ErrorKind.INVALID_REQUEST  # nosec B101
    assert normalized.message == "temperature 5 is outside [0, 2]"  # nosec B101
    assert normalized.to_wire() == {"kind": "InvalidRequest", "message": "temperature 5 is outside [0, 2]"}  # nosec B101


def test_to_gateway_error_wraps_raw_failure():
    raw = _StatusError(403)

    err = ErrorNormalizer().to_gateway_error("anthropic", raw, model="claude-3-5-haiku-20241022")

    assert err.kind is ErrorKind.AUTH_FAILURE  # nosec B101
    assert err.raw is raw and err.model == "claude-3-5-haiku-20241022"  # nosec B101
    assert ErrorNormalizer().to_gateway_error("anthropic", err) is err  # nosec B101
