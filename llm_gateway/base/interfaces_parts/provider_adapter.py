"""ProviderAdapter Protocol (single-class module).

The capability set every vendor variant exposes: ``stream`` and ``cancel``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

from ..models import ChatRequest, ModelDescriptor

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..cancellation import CancellationToken
    from ..streaming.stream_handle import StreamHandle


@runtime_checkable
class ProviderAdapter(Protocol):
    """Translate a normalized chat request into one vendor's streaming call.

    ``stream`` returns a lazy, finite, non-restartable sequence of
    ``StreamEvent`` values ending in exactly one ``done`` or ``error``.
    ``cancel`` stops local delivery at once and closes the upstream on a
    best-effort basis.
    """

    provider_name: str

    @property
    def is_configured(self) -> bool:
        """True when credentials for the vendor are present."""
        ...

    def stream(
        self,
        request: ChatRequest,
        descriptor: ModelDescriptor,
        *,
        token: "Optional[CancellationToken]" = None,
    ) -> "StreamHandle":
        ...

    def cancel(self, handle: "StreamHandle", reason: Optional[str] = None) -> None:
        ...
