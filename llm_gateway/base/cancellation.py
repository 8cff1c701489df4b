"""Cooperative cancellation primitives (public API facade).

``CancellationToken`` carries a cancel request from a connection down to
sessions and upstream calls, and can be awaited. Task cancellation by the
event loop still surfaces as :class:`asyncio.CancelledError`.
"""

from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken"]
