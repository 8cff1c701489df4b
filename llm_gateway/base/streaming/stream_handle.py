"""Cancellable handle over the events of one upstream call.

``ProviderAdapter.stream`` returns a :class:`StreamHandle`; it is an async
iterator of :class:`StreamEvent` and the argument of ``ProviderAdapter.cancel``.
Once cancellation is requested the handle stops yielding, whatever the
upstream keeps sending, and the upstream response is closed in the background.

The handle also tracks upstream liveness: it is ``opened`` once the start
phase handed over an SDK stream, and ``last_activity`` moves on every native
chunk, including chunks that translate to no event.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, AsyncIterator, Optional

from ..cancellation import CancellationToken
from ..log_support import LogContext
from ..logging import log_event
from .events import StreamEvent


async def close_upstream(upstream: Any, timeout: float, logger: Optional[logging.Logger] = None) -> None:
    """Close an SDK stream object, waiting at most ``timeout`` seconds.

    Accepts objects exposing ``close()`` or ``aclose()`` (sync or async).
    """
    closer = getattr(upstream, "aclose", None) or getattr(upstream, "close", None)
    if closer is None:
        return
    try:
        result = closer()
        if inspect.isawaitable(result):
            await asyncio.wait_for(result, timeout)
    except Exception as exc:  # best-effort: the stream is abandoned either way
        if logger is not None:
            log_event(logger, "stream.close_failed", None, level=logging.DEBUG, error=type(exc).__name__)


class StreamHandle:
    """Async iterator of normalized events with best-effort upstream cancel."""

    def __init__(
        self,
        *,
        provider: str,
        model: str,
        token: CancellationToken,
        grace_seconds: float,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.token = token
        self._grace_seconds = grace_seconds
        self._logger = logger
        self._events: Optional[AsyncIterator[StreamEvent]] = None
        self._upstream: Any = None
        self._close_task: Optional[asyncio.Task] = None
        self._opened = asyncio.Event()
        self.last_activity: Optional[float] = None

    def bind(self, events: AsyncIterator[StreamEvent]) -> None:
        self._events = events

    def attach_upstream(self, upstream: Any) -> None:
        """Record the SDK stream so cancellation can close it."""
        self._upstream = upstream
        self.touch()
        self._opened.set()
        if self.token.cancelled:
            self._schedule_close()

    @property
    def opened(self) -> bool:
        return self._opened.is_set()

    async def wait_opened(self) -> None:
        await self._opened.wait()

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def cancel(self, reason: Optional[str] = None) -> None:
        """Stop local delivery now and close the upstream without waiting."""
        self.token.cancel(reason or "cancelled")
        self._schedule_close()
        if self._logger is not None:
            log_event(
                self._logger,
                "stream.cancel_requested",
                LogContext(provider=self.provider, model=self.model),
                reason=self.token.reason,
            )

    def _schedule_close(self) -> None:
        if self._upstream is None or self._close_task is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._close_task = loop.create_task(close_upstream(self._upstream, self._grace_seconds, self._logger))

    def __aiter__(self) -> "StreamHandle":
        return self

    async def __anext__(self) -> StreamEvent:
        if self.token.cancelled or self._events is None:
            raise StopAsyncIteration
        event = await self._events.__anext__()
        if self.token.cancelled:
            raise StopAsyncIteration
        return event

    async def aclose(self) -> None:
        """Finalize the event generator once the consumer is done with it."""
        closer = getattr(self._events, "aclose", None)
        if closer is None or getattr(self._events, "ag_running", False):
            return
        await closer()


__all__ = ["StreamHandle", "close_upstream"]
