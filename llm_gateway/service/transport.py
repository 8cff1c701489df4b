"""Connection transports for the multiplexer.

The multiplexer only needs three operations from a physical connection:
receive one raw frame, send one JSON object, and close. ``Transport`` is that
seam; ``WebSocketTransport`` implements it over a Starlette/FastAPI
``WebSocket``. Any disconnect surfaces as :class:`TransportClosed`.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Protocol, Union, runtime_checkable

from fastapi import WebSocket, WebSocketDisconnect


class TransportClosed(Exception):
    """The physical connection is gone (peer closed, network drop, server close)."""


@runtime_checkable
class Transport(Protocol):
    async def receive(self) -> Union[str, bytes]:
        """Return the next inbound frame; raise ``TransportClosed`` on disconnect."""
        ...

    async def send_json(self, payload: Dict[str, Any]) -> None:
        """Write one JSON object; raise ``TransportClosed`` if the peer is gone."""
        ...

    async def close(self, code: int = 1000) -> None:
        ...


class WebSocketTransport:
    """``Transport`` over an accepted FastAPI ``WebSocket``."""

    def __init__(self, websocket: WebSocket) -> None:
        self._ws = websocket
        self._closed = False

    async def receive(self) -> Union[str, bytes]:
        if self._closed:
            raise TransportClosed("connection closed")
        try:
            message = await self._ws.receive()
        except (WebSocketDisconnect, RuntimeError) as exc:
            self._closed = True
            raise TransportClosed(str(exc)) from exc
        if message.get("type") == "websocket.disconnect":
            self._closed = True
            raise TransportClosed(f"peer closed ({message.get('code')})")
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""

    async def send_json(self, payload: Dict[str, Any]) -> None:
        if self._closed:
            raise TransportClosed("connection closed")
        try:
            await self._ws.send_text(json.dumps(payload, ensure_ascii=False))
        except (WebSocketDisconnect, RuntimeError) as exc:
            self._closed = True
            raise TransportClosed(str(exc)) from exc

    async def close(self, code: int = 1000) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._ws.close(code=code)
        except RuntimeError:
            # already closed by the peer
            return


__all__ = ["Transport", "TransportClosed", "WebSocketTransport"]
