"""Streaming package for the gateway.

Exposes normalized events, the adapter base, stream handles and the session
state machine under a single namespace.
"""

from .events import DeltaKind, EventType, StreamEvent
from .session import StreamSession
from .session_state import SessionState
from .stream_handle import StreamHandle, close_upstream
from .streaming_adapter import BaseStreamingAdapter
from .streaming_metrics import StreamMetrics, finalize_stream
from .translation_state import TranslationState

__all__ = [
    "DeltaKind",
    "EventType",
    "StreamEvent",
    "StreamSession",
    "SessionState",
    "StreamHandle",
    "close_upstream",
    "BaseStreamingAdapter",
    "StreamMetrics",
    "finalize_stream",
    "TranslationState",
]
