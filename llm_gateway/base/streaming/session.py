"""StreamSession: lifecycle of one in-flight chat request.

A session is driven by exactly one task (``run``) and may be cancelled from
any other coroutine on the same loop (``cancel``). It owns:

- the state machine ``PENDING -> STREAMING -> COMPLETED | FAILED | CANCELLED``
  (``PENDING`` may also go straight to ``FAILED`` or ``CANCELLED``);
- a cancellation token, normally a child of the owning connection's token;
- the usage reported by the adapter.

Every wait inside ``run`` (upstream slot, next adapter event, writing to the
client) is raced against the token, so a cancel takes effect at the next
suspension point without waiting for the upstream. An event that becomes
ready in the same tick as a cancel is dropped. The session emits exactly one
terminal event and nothing after it.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Tuple

from ..cancellation import CancellationToken
from ..errors import ErrorKind, NormalizedError, normalize_error
from ..limiter import UpstreamLimiter
from ..log_support import LogContext
from ..logging import get_logger, log_event, normalized_log_event
from ..models import ChatRequest, ModelDescriptor, UsageStats
from ..timeouts import TimeoutConfig, get_timeout_config
from .events import EventType, StreamEvent
from .session_state import SessionState
from .stream_handle import StreamHandle

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..interfaces import ProviderAdapter

Emit = Callable[[StreamEvent], Awaitable[None]]
OnTerminal = Callable[["StreamSession"], None]

_CANCELLED = "cancelled"
_IDLE = "idle"
_EXHAUSTED = "exhausted"
_EVENT = "event"

_TERMINAL_STATES = {
    EventType.DONE: SessionState.COMPLETED,
    EventType.ERROR: SessionState.FAILED,
    EventType.CANCELLED: SessionState.CANCELLED,
}


async def _pull(handle: StreamHandle) -> Optional[StreamEvent]:
    try:
        return await handle.__anext__()
    except StopAsyncIteration:
        return None


class StreamSession:
    """Server-side state for one chat request from acceptance to terminal outcome."""

    def __init__(
        self,
        request: ChatRequest,
        descriptor: ModelDescriptor,
        *,
        token: Optional[CancellationToken] = None,
        limiter: Optional[UpstreamLimiter] = None,
        timeouts: Optional[TimeoutConfig] = None,
        logger: Optional[logging.Logger] = None,
        connection_id: Optional[str] = None,
    ) -> None:
        self.request = request
        self.descriptor = descriptor
        self.token = token or CancellationToken()
        self.usage = UsageStats()
        self._limiter = limiter
        self._timeouts = timeouts or get_timeout_config()
        self._logger = logger or get_logger("gateway.session")
        self._ctx = LogContext(
            provider=descriptor.provider.value,
            model=descriptor.id,
            request_id=request.request_id,
            connection_id=connection_id,
        )
        self._state = SessionState.PENDING
        self._adapter: Optional["ProviderAdapter"] = None
        self._handle: Optional[StreamHandle] = None
        self._cancel_waiter: Optional[asyncio.Future] = None
        self._terminal_event: Optional[StreamEvent] = None

    @property
    def request_id(self) -> str:
        return self.request.request_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def terminal(self) -> bool:
        return self._state.terminal

    @property
    def terminal_event(self) -> Optional[StreamEvent]:
        return self._terminal_event

    # ----- Cancellation -----
    def cancel(self, reason: str = "cancelled") -> bool:
        """Request cancellation; a no-op once terminal or already requested.

        Returns True only for the call that actually requested it.
        """
        if self._state.terminal or not self.token.cancel(reason):
            log_event(self._logger, "session.late_event", self._ctx, kind="cancel", state=self._state.value)
            return False
        if self._adapter is not None and self._handle is not None:
            self._adapter.cancel(self._handle, reason)
        return True

    # ----- Driving -----
    async def run(self, adapter: "ProviderAdapter", emit: Emit, on_terminal: Optional[OnTerminal] = None) -> StreamEvent:
        """Consume the adapter stream and forward events through ``emit``.

        ``emit`` receives every event in production order and is awaited, so
        a slow consumer suspends the session. ``on_terminal`` runs after the
        terminal event has been handed to ``emit``, including when the task
        itself is cancelled.
        """
        self._adapter = adapter
        self._cancel_waiter = asyncio.ensure_future(self.token.wait())
        try:
            try:
                terminal = await self._drive(adapter, emit)
            except asyncio.CancelledError:
                self._settle(SessionState.CANCELLED, StreamEvent.cancelled())
                raise
            except Exception as exc:
                log_event(
                    self._logger,
                    "session.internal_error",
                    self._ctx,
                    level=logging.ERROR,
                    error=type(exc).__name__,
                    detail=str(exc)[:2000],
                )
                terminal = self._settle(SessionState.FAILED, StreamEvent.failed(normalize_error(None, exc)))
            await emit(terminal)
            return terminal
        finally:
            self._cancel_waiter.cancel()
            if on_terminal is not None:
                on_terminal(self)

    async def _drive(self, adapter: "ProviderAdapter", emit: Emit) -> StreamEvent:
        if self.token.cancelled:
            return self._settle(SessionState.CANCELLED, StreamEvent.cancelled())
        provider = self.descriptor.provider.value
        if self._limiter is not None and not await self._limiter.acquire(provider, self.token):
            return self._settle(SessionState.CANCELLED, StreamEvent.cancelled())
        try:
            return await self._consume(adapter, emit)
        finally:
            if self._limiter is not None:
                self._limiter.release(provider)

    async def _consume(self, adapter: "ProviderAdapter", emit: Emit) -> StreamEvent:
        if self.token.cancelled:
            return self._settle(SessionState.CANCELLED, StreamEvent.cancelled())
        handle = adapter.stream(self.request, self.descriptor, token=self.token.child())
        self._handle = handle
        self._transition(SessionState.STREAMING)
        try:
            while True:
                outcome, event = await self._next_event(handle)
                if outcome == _CANCELLED:
                    adapter.cancel(handle, self.token.reason)
                    return self._settle(SessionState.CANCELLED, StreamEvent.cancelled())
                if outcome == _IDLE:
                    adapter.cancel(handle, "idle timeout")
                    error = NormalizedError.of(
                        ErrorKind.UPSTREAM_UNAVAILABLE,
                        f"no data from upstream for {self._timeouts.idle_timeout_seconds:g}s",
                    )
                    return self._settle(SessionState.FAILED, StreamEvent.failed(error), error_code=error.kind.value)
                if outcome == _EXHAUSTED or event is None:
                    error = NormalizedError.of(ErrorKind.INTERNAL, "stream ended without a terminal event")
                    return self._settle(SessionState.FAILED, StreamEvent.failed(error), error_code=error.kind.value)
                if event.terminal:
                    code = event.error.kind.value if event.error is not None else None
                    return self._settle(_TERMINAL_STATES[event.type], event, error_code=code)
                if event.type is EventType.USAGE and event.usage is not None:
                    self.usage.update(input_tokens=event.usage.input_tokens, output_tokens=event.usage.output_tokens)
                if not await self._emit_or_cancel(emit, event):
                    adapter.cancel(handle, self.token.reason)
                    return self._settle(SessionState.CANCELLED, StreamEvent.cancelled())
        finally:
            await self._close_handle(handle)

    async def _next_event(self, handle: StreamHandle) -> Tuple[str, Optional[StreamEvent]]:
        """Wait for the next adapter event, a cancel, or the idle timeout.

        The idle clock runs only once the upstream is open and restarts on
        every native chunk; the start phase is bounded by the adapter's start
        timeout and retry policy instead.
        """
        pulling = asyncio.ensure_future(_pull(handle))
        try:
            if not handle.opened:
                await self._wait_opened(handle, pulling)
            while not pulling.done() and not self.token.cancelled:
                remaining = self._idle_remaining(handle)
                if remaining is not None and remaining <= 0:
                    break
                await asyncio.wait(
                    {pulling, self._cancel_waiter},
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )
        except asyncio.CancelledError:
            pulling.cancel()
            raise
        if self.token.cancelled:
            if pulling.done() and not pulling.cancelled() and pulling.exception() is None:
                self._log_dropped(pulling.result())
            await self._discard(pulling)
            return _CANCELLED, None
        if not pulling.done():
            await self._discard(pulling)
            return _IDLE, None
        event = pulling.result()
        return (_EXHAUSTED, None) if event is None else (_EVENT, event)

    async def _wait_opened(self, handle: StreamHandle, pulling: asyncio.Future) -> None:
        opening = asyncio.ensure_future(handle.wait_opened())
        try:
            await asyncio.wait({pulling, opening, self._cancel_waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            opening.cancel()

    def _idle_remaining(self, handle: StreamHandle) -> Optional[float]:
        idle = self._timeouts.idle_timeout_seconds
        if not idle or idle <= 0:
            return None
        if handle.last_activity is None:
            return idle
        return idle - (time.monotonic() - handle.last_activity)

    async def _emit_or_cancel(self, emit: Emit, event: StreamEvent) -> bool:
        """Forward a non-terminal event; False when a cancel wins the race."""
        if self.token.cancelled:
            self._log_dropped(event)
            return False
        writing = asyncio.ensure_future(emit(event))
        try:
            done, _ = await asyncio.wait({writing, self._cancel_waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            writing.cancel()
            raise
        if writing in done:
            writing.result()
            return True
        await self._discard(writing)
        return False

    async def _discard(self, task: asyncio.Future) -> None:
        """Cancel ``task`` and collect its outcome within the cancel grace period."""
        if not task.done():
            task.cancel()
        await asyncio.wait({task}, timeout=self._timeouts.cancel_grace_seconds)
        if task.done() and not task.cancelled():
            task.exception()

    async def _close_handle(self, handle: StreamHandle) -> None:
        try:
            await handle.aclose()
        except Exception as exc:  # the stream is finished either way
            log_event(self._logger, "session.close_failed", self._ctx, level=logging.DEBUG, error=type(exc).__name__)

    # ----- State -----
    def _transition(self, target: SessionState, *, error_code: Optional[str] = None) -> bool:
        if not self._state.can_move_to(target):
            log_event(
                self._logger,
                "session.late_event",
                self._ctx,
                kind="transition",
                state=self._state.value,
                target=target.value,
            )
            return False
        previous, self._state = self._state, target
        normalized_log_event(
            self._logger,
            "session.transition",
            self._ctx,
            phase="session",
            error_code=error_code,
            emitted=None,
            tokens=self.usage if target.terminal else None,
            level=logging.INFO if target.terminal else logging.DEBUG,
            **{"from": previous.value, "to": target.value},
        )
        return True

    def _settle(self, target: SessionState, event: StreamEvent, *, error_code: Optional[str] = None) -> StreamEvent:
        if self._transition(target, error_code=error_code):
            self._terminal_event = event
        return self._terminal_event or event

    def _log_dropped(self, event: Any) -> None:
        kind = event.type.value if isinstance(event, StreamEvent) else "unknown"
        log_event(self._logger, "session.late_event", self._ctx, kind=kind, state=self._state.value)


__all__ = ["StreamSession", "Emit", "OnTerminal"]
