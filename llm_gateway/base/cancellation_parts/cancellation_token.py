"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` used by connections, sessions and stream
handles. Tokens form a tree: a connection owns the root, each session holds a
child and each upstream call a grandchild, so a disconnect cascades to every
in-flight call without the connection tracking them individually.
"""

from __future__ import annotations

import asyncio
from typing import List

from .state import State


class CancellationToken:
    """A cooperative cancellation token with cascading semantics.

    Besides polling ``cancelled`` the token can be awaited with :meth:`wait`,
    which lets a task race upstream I/O against a cancel request. ``cancel``
    must be called from the event loop thread.
    """

    def __init__(self, *, parent: "CancellationToken | None" = None) -> None:
        self._state = State()
        self._event = asyncio.Event()
        self._children: List[CancellationToken] = []
        if parent is not None:
            parent.link_child(self)

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    def cancel(self, reason: str | None = None) -> bool:
        """Request cancellation and cascade to children.

        Returns True on the first call only; later calls are no-ops.
        """
        if self._state.cancelled:
            return False
        self._state.cancelled = True
        self._state.reason = reason
        self._event.set()
        for child in list(self._children):
            child.cancel(reason)
        return True

    def link_child(self, token: "CancellationToken") -> "CancellationToken":
        """Link a child token so parent cancellation cascades (returns child)."""
        self._children.append(token)
        if self._state.cancelled:
            token.cancel(self._state.reason)
        return token

    def unlink_child(self, token: "CancellationToken") -> None:
        """Forget a finished child so long-lived parents do not accumulate."""
        try:
            self._children.remove(token)
        except ValueError:
            pass

    def child(self) -> "CancellationToken":
        """Create and link a child token (shortcut)."""
        return CancellationToken(parent=self)

    async def wait(self) -> None:
        """Suspend until cancellation is requested."""
        await self._event.wait()

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"reason={self._state.reason!r}, children={len(self._children)})"
        )


__all__ = ["CancellationToken"]
