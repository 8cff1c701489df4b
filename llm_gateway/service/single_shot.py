"""SingleShotStreamer: one chat session per long-lived HTTP response.

The same session machinery as the persistent connection, with exactly one
session and an implicit request id, so outbound events carry no
``requestId``. The session runs in its own task and hands events to the
response through a bounded queue, so a slow reader suspends the session
rather than growing a buffer.

There is no cancel message on this transport: the session is cancelled when
the HTTP client goes away, either because the response generator is closed
by the server or because the optional ``is_disconnected`` probe says so.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Set

from ..base.errors import GatewayError
from ..base.log_support import LogContext
from ..base.logging import get_logger, log_event
from ..base.streaming import StreamEvent, StreamSession
from .gateway import Gateway

DisconnectProbe = Callable[[], Awaitable[bool]]

# Session tasks outlive the response generator after a disconnect.
_BACKGROUND: Set[asyncio.Task] = set()


def sse_format(payload: Dict[str, Any]) -> str:
    """Frame one wire event as a Server-Sent Events message."""
    return f"event: {payload['type']}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


class SingleShotStreamer:
    """Drive one request to its terminal event as an async iterator of wire dicts."""

    def __init__(
        self,
        gateway: Gateway,
        *,
        is_disconnected: Optional[DisconnectProbe] = None,
        request_id: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._gateway = gateway
        self._is_disconnected = is_disconnected
        self._request_id = request_id
        self._logger = logger or get_logger("gateway.single_shot")
        self.session: Optional[StreamSession] = None

    async def events(self, payload: Any) -> AsyncIterator[Dict[str, Any]]:
        """Yield the wire events of one request, ending with its terminal event.

        A request that fails validation yields a single ``chat_error`` and no
        session is created.
        """
        try:
            request, descriptor = self._gateway.prepare(payload, request_id=self._request_id)
            adapter = self._gateway.adapter_for(descriptor.provider)
        except GatewayError as exc:
            log_event(
                self._logger,
                "session.rejected",
                LogContext(request_id=self._request_id),
                kind=exc.kind.value,
                detail=exc.message,
            )
            yield StreamEvent.failed(exc.normalized()).to_wire()
            return

        session = self._gateway.new_session(request, descriptor)
        self.session = session
        queue: "asyncio.Queue[StreamEvent]" = asyncio.Queue(maxsize=self._gateway.settings.outbound_queue_size)
        closed = False

        async def emit(event: StreamEvent) -> None:
            if not closed:
                await queue.put(event)

        runner = asyncio.create_task(session.run(adapter, emit), name=f"single-shot-{request.request_id}")
        _BACKGROUND.add(runner)
        runner.add_done_callback(_BACKGROUND.discard)
        watcher = asyncio.create_task(self._watch(session)) if self._is_disconnected is not None else None
        try:
            while True:
                event = await self._next(queue, runner)
                if event is None:
                    return
                yield event.to_wire()
                if event.terminal:
                    return
        finally:
            closed = True
            if not session.terminal:
                session.cancel("client disconnected")
            if watcher is not None:
                watcher.cancel()
            while not queue.empty():
                queue.get_nowait()

    @staticmethod
    async def _next(queue: "asyncio.Queue[StreamEvent]", runner: asyncio.Task) -> Optional[StreamEvent]:
        """Next queued event, or None once the session task ended with nothing left."""
        if not queue.empty():
            return queue.get_nowait()
        getting = asyncio.ensure_future(queue.get())
        try:
            await asyncio.wait({getting, runner}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            getting.cancel()
            raise
        if getting.done():
            return getting.result()
        getting.cancel()
        return queue.get_nowait() if not queue.empty() else None

    async def _watch(self, session: StreamSession) -> None:
        interval = self._gateway.settings.disconnect_poll_seconds
        while not session.terminal:
            await asyncio.sleep(interval)
            if await self._is_disconnected():
                log_event(
                    self._logger,
                    "connection.closed",
                    LogContext(request_id=session.request_id),
                    level=logging.DEBUG,
                )
                session.cancel("client disconnected")
                return


__all__ = ["SingleShotStreamer", "sse_format"]
