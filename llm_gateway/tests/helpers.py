"""Shared test doubles for connection, session and adapter tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Union

from llm_gateway.service.transport import TransportClosed


class FakeTransport:
    """In-memory ``Transport``: tests push inbound frames and read what was sent."""

    def __init__(self) -> None:
        self.inbound: "asyncio.Queue[Optional[Union[str, bytes]]]" = asyncio.Queue()
        self.sent: List[Dict[str, Any]] = []
        self.closed_with: Optional[int] = None
        self._changed = asyncio.Event()

    def feed(self, message: Union[Dict[str, Any], str, bytes]) -> None:
        self.inbound.put_nowait(json.dumps(message) if isinstance(message, dict) else message)

    def disconnect(self) -> None:
        self.inbound.put_nowait(None)

    async def receive(self) -> Union[str, bytes]:
        item = await self.inbound.get()
        if item is None:
            raise TransportClosed("peer closed")
        return item

    async def send_json(self, payload: Dict[str, Any]) -> None:
        self.sent.append(payload)
        self._changed.set()

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code

    def for_id(self, request_id: str) -> List[Dict[str, Any]]:
        return [p for p in self.sent if p.get("requestId") == request_id]

    def types_for(self, request_id: str) -> List[str]:
        return [p["type"] for p in self.for_id(request_id)]

    async def wait_for(self, predicate: Callable[[List[Dict[str, Any]]], bool], timeout: float = 3.0) -> None:
        async with asyncio.timeout(timeout):
            while not predicate(self.sent):
                self._changed.clear()
                await self._changed.wait()

    async def wait_terminal(self, request_id: str, timeout: float = 3.0) -> Dict[str, Any]:
        terminal = {"chat_done", "chat_error", "chat_cancelled"}
        await self.wait_for(lambda sent: any(t in terminal for t in self.types_for(request_id)), timeout)
        return next(p for p in self.for_id(request_id) if p["type"] in terminal)


async def wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
    """Poll ``predicate`` on the loop until it holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)


class FakeUpstream:
    """Async-iterable stand-in for an SDK streaming response."""

    def __init__(self, items: List[Any], fail_after: Optional[BaseException] = None) -> None:
        self._items = items
        self._fail_after = fail_after
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self._items:
            yield item
        if self._fail_after is not None:
            raise self._fail_after

    async def close(self) -> None:
        self.closed = True
