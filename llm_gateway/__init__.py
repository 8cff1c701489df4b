"""llm_gateway package

Streaming gateway in front of several LLM vendors.

Purpose:
    Accept chat requests over a persistent WebSocket connection (many
    requests multiplexed by ``requestId``) or a single-shot Server-Sent
    Events response, dispatch them to the vendor named by the model catalog,
    and stream back one normalized event vocabulary regardless of vendor.

Public API (re-exported):
    - Version: ``__version__``
    - Errors: :class:`ErrorKind`, :class:`GatewayError`, :class:`NormalizedError`
    - Catalog: :class:`ModelRegistry`
    - Streaming: :class:`StreamEvent`, :class:`StreamSession`
    - Adapters: :class:`ProviderFactory`
"""

from .base.errors import ErrorKind, GatewayError, NormalizedError
from .base.factory import ProviderFactory
from .base.registry import ModelRegistry
from .base.streaming import StreamEvent, StreamSession

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ErrorKind",
    "GatewayError",
    "NormalizedError",
    "ProviderFactory",
    "ModelRegistry",
    "StreamEvent",
    "StreamSession",
]
