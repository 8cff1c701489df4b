"""Service layer: the process-wide gateway, its transports and the FastAPI app.

``app`` is not imported here so that the multiplexer and single-shot streamer
can be used without building an application.
"""

from .gateway import Gateway
from .multiplexer import ConnectionMultiplexer, protocol_error
from .single_shot import SingleShotStreamer, sse_format
from .transport import Transport, TransportClosed, WebSocketTransport

__all__ = [
    "Gateway",
    "ConnectionMultiplexer",
    "protocol_error",
    "SingleShotStreamer",
    "sse_format",
    "Transport",
    "TransportClosed",
    "WebSocketTransport",
]
