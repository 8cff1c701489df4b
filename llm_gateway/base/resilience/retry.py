"""Async retry policy for the upstream start phase.

Only the opening of an upstream stream is retried: once a chunk has been
produced the request is no longer restartable. Retries apply to
``GatewayError`` instances whose kind is in ``retryable_kinds``.
"""
from __future__ import annotations

import asyncio
import functools
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Protocol, TypeVar

from ..errors import ErrorKind, GatewayError

T = TypeVar("T")


class AttemptLogger(Protocol):  # pragma: no cover - structural protocol
    def __call__(
        self,
        *,
        attempt: int,
        max_attempts: int,
        delay: float | None,
        error: GatewayError | None,
    ) -> None: ...


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 2
    delay_base: float = 2.0  # exponential base (base ** attempt)
    retryable_kinds: tuple[ErrorKind, ...] = (
        ErrorKind.RATE_LIMITED,
        ErrorKind.UPSTREAM_UNAVAILABLE,
    )
    attempt_logger: AttemptLogger | None = None

    def delays(self) -> Iterable[float]:
        for attempt in range(self.max_attempts - 1):
            yield self.delay_base**attempt


DEFAULT_RETRY_CONFIG = RetryConfig()
NO_RETRY = RetryConfig(max_attempts=1)


def retry(config: RetryConfig = DEFAULT_RETRY_CONFIG):
    """Return a decorator applying the retry policy to a coroutine function.

    - Retries only on configured retryable error kinds
    - Exponential backoff using delay_base ** attempt
    - Preserves the original function signature
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            delays = list(config.delays()) + [None]  # final attempt has delay None
            for attempt, delay in enumerate(delays):
                try:
                    result = await func(*args, **kwargs)
                except GatewayError as e:
                    if config.attempt_logger:
                        config.attempt_logger(
                            attempt=attempt,
                            max_attempts=config.max_attempts,
                            delay=delay,
                            error=e,
                        )
                    if e.kind in config.retryable_kinds and delay is not None:
                        await asyncio.sleep(delay)
                        continue
                    raise
                if config.attempt_logger:
                    config.attempt_logger(
                        attempt=attempt,
                        max_attempts=config.max_attempts,
                        delay=None,
                        error=None,
                    )
                return result
            raise RuntimeError("retry: no attempts configured")

        return wrapper

    return decorator


__all__ = [
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
    "NO_RETRY",
    "retry",
]
