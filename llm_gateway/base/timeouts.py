"""Unified timeout configuration for adapters and sessions.

This module centralizes the timeout values used by the gateway and exposes an
async guard for start phases.

Key Components
--------------
TimeoutConfig
    Dataclass capturing normalized timeout values.

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use only. Supported environment variables (all optional):
        GATEWAY_TIMEOUT_START_SECONDS
        GATEWAY_TIMEOUT_IDLE_SECONDS
        GATEWAY_TIMEOUT_CANCEL_GRACE_SECONDS
        GATEWAY_TIMEOUT_HTTP_SECONDS

operation_timeout(seconds)
    Async context manager raising ``TimeoutError`` when the guarded block
    exceeds ``seconds``. Inert when ``seconds`` is not positive.
"""
from __future__ import annotations

import asyncio
import contextlib
import os
from dataclasses import dataclass
from typing import AsyncContextManager


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        start_timeout_seconds: Timeout for opening the upstream stream and
            receiving its first response (per attempt).
        idle_timeout_seconds: Maximum silence while a session is streaming
            before it is failed with ``UpstreamUnavailable``.
        cancel_grace_seconds: Upper bound for the best-effort close of an
            upstream stream after cancellation.
        http_timeout_seconds: Baseline timeout handed to SDK HTTP clients.
    """

    start_timeout_seconds: float = 30.0
    idle_timeout_seconds: float = 60.0
    cancel_grace_seconds: float = 5.0
    http_timeout_seconds: float = 600.0


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None
_ENV_NAMES = (
    "GATEWAY_TIMEOUT_START_SECONDS",
    "GATEWAY_TIMEOUT_IDLE_SECONDS",
    "GATEWAY_TIMEOUT_CANCEL_GRACE_SECONDS",
    "GATEWAY_TIMEOUT_HTTP_SECONDS",
)


def _parse_env_float(name: str, default: float) -> float:
    """Parse an environment variable as a positive float with a fallback default."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached `TimeoutConfig` instance.

    The cache is refreshed when any of the supported variables changes, which
    keeps tests able to adjust values through ``monkeypatch.setenv``.
    """
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - module cache
    guard = "/".join(os.getenv(name, "") for name in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED
    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        start_timeout_seconds=_parse_env_float("GATEWAY_TIMEOUT_START_SECONDS", defaults.start_timeout_seconds),
        idle_timeout_seconds=_parse_env_float("GATEWAY_TIMEOUT_IDLE_SECONDS", defaults.idle_timeout_seconds),
        cancel_grace_seconds=_parse_env_float(
            "GATEWAY_TIMEOUT_CANCEL_GRACE_SECONDS", defaults.cancel_grace_seconds
        ),
        http_timeout_seconds=_parse_env_float("GATEWAY_TIMEOUT_HTTP_SECONDS", defaults.http_timeout_seconds),
    )
    _ENV_GUARD = guard
    return _CACHED


def operation_timeout(seconds: float | None) -> AsyncContextManager[object]:
    """Return an async guard enforcing ``seconds`` on the enclosed block."""
    if not seconds or seconds <= 0:
        return contextlib.nullcontext()
    return asyncio.timeout(seconds)


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
    "operation_timeout",
]
