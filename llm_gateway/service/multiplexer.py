"""ConnectionMultiplexer: many concurrent chat streams over one connection.

Structure
---------
- One reader loop (``serve``) parses inbound frames and dispatches them by
  ``type``. It is the only code that adds sessions to the session map.
- One task per accepted chat request runs its :class:`StreamSession`.
- One writer task drains a bounded outbound queue into the transport. A full
  queue suspends the producing session, which is how a slow client pushes
  back on the upstream.

Every session event is tagged with its ``requestId`` before it is queued.
Each session has exactly one producer, so per-id order is kept; events of
different ids interleave freely.

Inbound messages
----------------
``chat``, ``cancel``, ``cancel_all``, ``ping``, ``models`` and ``providers``.
Anything malformed or unknown gets a ``protocol_error`` reply and the
connection stays open.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

from pydantic import ValidationError

from ..base.cancellation import CancellationToken
from ..base.dto import CancelDTO
from ..base.errors import ErrorKind, GatewayError, NormalizedError
from ..base.log_support import LogContext
from ..base.logging import get_logger, log_event
from ..base.streaming import StreamEvent, StreamSession
from ..base.timeouts import operation_timeout
from .gateway import Gateway
from .transport import Transport, TransportClosed

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


def protocol_error(message: str, request_id: Optional[str] = None) -> Dict[str, Any]:
    """Build the ``protocol_error`` reply for a connection-level problem."""
    payload: Dict[str, Any] = {"type": "protocol_error"}
    if request_id is not None:
        payload["requestId"] = request_id
    payload["error"] = {"kind": ErrorKind.INVALID_REQUEST.value, "message": message}
    return payload


class ConnectionMultiplexer:
    """Own one physical connection and the sessions opened over it."""

    def __init__(
        self,
        gateway: Gateway,
        transport: Transport,
        *,
        connection_id: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._gateway = gateway
        self._transport = transport
        self._settings = gateway.settings
        self.connection_id = connection_id or uuid.uuid4().hex[:12]
        self._logger = logger or get_logger("gateway.connection")
        self._ctx = LogContext(connection_id=self.connection_id)
        self._token = CancellationToken()
        self._sessions: Dict[str, StreamSession] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._outbound: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue(maxsize=self._settings.outbound_queue_size)
        self._closed_waiter: Optional[asyncio.Future] = None
        self._closed = False
        self._handlers: Dict[str, Handler] = {
            "chat": self._handle_chat,
            "cancel": self._handle_cancel,
            "cancel_all": self._handle_cancel_all,
            "ping": self._handle_ping,
            "models": self._handle_models,
            "providers": self._handle_providers,
        }

    @property
    def open_sessions(self) -> int:
        return len(self._sessions)

    def session(self, request_id: str) -> Optional[StreamSession]:
        return self._sessions.get(request_id)

    # ----- lifecycle -----
    async def serve(self) -> None:
        """Run until the peer disconnects or the connection can no longer be written."""
        log_event(self._logger, "connection.open", self._ctx)
        self._closed_waiter = asyncio.ensure_future(self._token.wait())
        writer = asyncio.create_task(self._write_loop())
        try:
            while not self._closed:
                try:
                    frame = await self._receive(writer)
                except TransportClosed:
                    break
                await self.dispatch(frame)
        finally:
            self._shutdown("disconnect")
            writer.cancel()
            await asyncio.wait({writer})
            self._closed_waiter.cancel()
            log_event(self._logger, "connection.closed", self._ctx, sessions=len(self._sessions))

    async def _receive(self, writer: asyncio.Task) -> Union[str, bytes]:
        receiving = asyncio.ensure_future(self._transport.receive())
        try:
            done, _ = await asyncio.wait({receiving, writer}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            receiving.cancel()
            raise
        if receiving in done:
            return receiving.result()
        receiving.cancel()
        await asyncio.wait({receiving})
        raise TransportClosed("writer stopped")

    def _shutdown(self, reason: str) -> None:
        """Cancel every session without waiting for them; the client is gone."""
        if self._closed:
            return
        self._closed = True
        for session in list(self._sessions.values()):
            if not session.terminal:
                session.cancel(reason)
        self._token.cancel(reason)

    async def _write_loop(self) -> None:
        while True:
            payload = await self._outbound.get()
            try:
                async with operation_timeout(self._settings.write_timeout_seconds):
                    await self._transport.send_json(payload)
            except (TransportClosed, TimeoutError) as exc:
                log_event(
                    self._logger,
                    "connection.write_failed",
                    self._ctx,
                    level=logging.WARNING,
                    error=type(exc).__name__,
                )
                self._shutdown("write failed")
                await self._transport.close(code=1011)
                return

    async def _send(self, payload: Dict[str, Any]) -> None:
        """Queue one outbound object, suspending while the queue is full."""
        if self._closed:
            return
        if not self._outbound.full():
            self._outbound.put_nowait(payload)
            return
        putting = asyncio.ensure_future(self._outbound.put(payload))
        waiters = {putting} if self._closed_waiter is None else {putting, self._closed_waiter}
        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            putting.cancel()
            raise
        if putting not in done:
            putting.cancel()

    async def _emit_event(self, request_id: str, event: StreamEvent) -> None:
        await self._send(event.to_wire(request_id))

    def _on_terminal(self, session: StreamSession) -> None:
        if self._sessions.get(session.request_id) is session:
            del self._sessions[session.request_id]
        self._token.unlink_child(session.token)

    # ----- dispatch -----
    async def dispatch(self, frame: Union[str, bytes]) -> None:
        """Parse and route one inbound frame."""
        size = len(frame.encode("utf-8")) if isinstance(frame, str) else len(frame)
        if size > self._settings.max_message_bytes:
            await self._protocol_error(f"message exceeds {self._settings.max_message_bytes} bytes")
            return
        try:
            message = json.loads(frame)
        except (ValueError, UnicodeDecodeError):
            await self._protocol_error("message is not valid JSON")
            return
        if not isinstance(message, dict):
            await self._protocol_error("message must be a JSON object")
            return
        kind = message.get("type")
        handler = self._handlers.get(kind) if isinstance(kind, str) else None
        if handler is None:
            await self._protocol_error(f"unknown message type {kind!r}", _request_id_of(message))
            return
        await handler(message)

    async def _protocol_error(self, message: str, request_id: Optional[str] = None) -> None:
        log_event(
            self._logger,
            "connection.protocol_error",
            LogContext(connection_id=self.connection_id, request_id=request_id),
            level=logging.WARNING,
            detail=message,
        )
        await self._send(protocol_error(message, request_id))

    async def _reject(self, request_id: str, error: NormalizedError) -> None:
        """Answer a chat request that never became a session with one ``chat_error``."""
        log_event(
            self._logger,
            "session.rejected",
            LogContext(connection_id=self.connection_id, request_id=request_id),
            kind=error.kind.value,
            detail=error.message,
        )
        await self._send(StreamEvent.failed(error).to_wire(request_id))

    async def _handle_chat(self, message: Dict[str, Any]) -> None:
        request_id = _request_id_of(message)
        if request_id is None:
            await self._protocol_error("chat requires a non-empty string requestId")
            return
        if request_id in self._sessions:
            await self._protocol_error(f"requestId '{request_id}' is already in use", request_id)
            return
        if len(self._sessions) >= self._settings.max_sessions_per_connection:
            await self._reject(
                request_id,
                NormalizedError.of(
                    ErrorKind.CAPACITY_EXCEEDED,
                    f"at most {self._settings.max_sessions_per_connection} concurrent requests per connection",
                ),
            )
            return
        try:
            request, descriptor = self._gateway.prepare(message, request_id=request_id)
            adapter = self._gateway.adapter_for(descriptor.provider)
        except GatewayError as exc:
            await self._reject(request_id, exc.normalized())
            return
        session = self._gateway.new_session(
            request,
            descriptor,
            token=self._token.child(),
            connection_id=self.connection_id,
        )
        self._sessions[request_id] = session
        task = asyncio.create_task(
            session.run(adapter, functools.partial(self._emit_event, request_id), self._on_terminal),
            name=f"session-{self.connection_id}-{request_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle_cancel(self, message: Dict[str, Any]) -> None:
        try:
            request_id = CancelDTO.model_validate(message).request_id
        except ValidationError:
            await self._protocol_error("cancel requires a non-empty string requestId")
            return
        session = self._sessions.get(request_id)
        if session is None:
            log_event(
                self._logger,
                "session.cancel_ignored",
                LogContext(connection_id=self.connection_id, request_id=request_id),
                level=logging.DEBUG,
            )
            return
        session.cancel("client cancel")

    async def _handle_cancel_all(self, message: Dict[str, Any]) -> None:
        for session in list(self._sessions.values()):
            if not session.terminal:
                session.cancel("client cancel_all")

    async def _handle_ping(self, message: Dict[str, Any]) -> None:
        await self._send({"type": "pong"})

    async def _handle_models(self, message: Dict[str, Any]) -> None:
        provider = message.get("provider")
        try:
            models = self._gateway.model_listing(provider if isinstance(provider, str) else None)
        except GatewayError as exc:
            await self._protocol_error(exc.message)
            return
        await self._send({"type": "models", "models": models})

    async def _handle_providers(self, message: Dict[str, Any]) -> None:
        await self._send({"type": "providers", "providers": self._gateway.provider_status()})


def _request_id_of(message: Dict[str, Any]) -> Optional[str]:
    value = message.get("requestId")
    return value if isinstance(value, str) and value else None


__all__ = ["ConnectionMultiplexer", "protocol_error"]
