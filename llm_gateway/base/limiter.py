"""Per-provider upstream concurrency limiter.

One ``asyncio.Semaphore`` per provider tag, shared by every connection in the
process. The limit belongs to the upstream vendor, not to a client, so it is
never tracked per connection. Waiters suspend on the semaphore and are
released in arrival order as slots free up.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Optional

from .cancellation import CancellationToken


class UpstreamLimiter:
    """Bound the number of concurrent upstream calls for each provider."""

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        self._limit = limit
        self._semaphores: Dict[str, asyncio.Semaphore] = {}
        self._in_flight: Dict[str, int] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def _semaphore(self, provider: str) -> asyncio.Semaphore:
        sem = self._semaphores.get(provider)
        if sem is None:
            sem = asyncio.Semaphore(self._limit)
            self._semaphores[provider] = sem
        return sem

    def in_flight(self, provider: str) -> int:
        return self._in_flight.get(provider, 0)

    async def acquire(self, provider: str, token: Optional[CancellationToken] = None) -> bool:
        """Wait for a slot; return False when ``token`` fires first.

        A slot obtained in the same tick as the cancel is handed back, so a
        False result never holds a slot.
        """
        sem = self._semaphore(provider)
        if token is None:
            await sem.acquire()
            self._in_flight[provider] = self.in_flight(provider) + 1
            return True
        if token.cancelled:
            return False
        acquiring = asyncio.ensure_future(sem.acquire())
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({acquiring, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            waiter.cancel()
            self._abandon(sem, acquiring)
            raise
        waiter.cancel()
        if token.cancelled or not acquiring.done():
            self._abandon(sem, acquiring)
            return False
        self._in_flight[provider] = self.in_flight(provider) + 1
        return True

    @staticmethod
    def _abandon(sem: asyncio.Semaphore, acquiring: "asyncio.Future[bool]") -> None:
        """Drop a pending acquire, returning the slot if it was already granted."""
        if not acquiring.done():
            acquiring.cancel()
        elif not acquiring.cancelled() and acquiring.exception() is None:
            sem.release()

    def release(self, provider: str) -> None:
        self._in_flight[provider] = max(0, self.in_flight(provider) - 1)
        self._semaphore(provider).release()


__all__ = ["UpstreamLimiter"]
