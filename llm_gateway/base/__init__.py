"""
Gateway Base Package

Exports the provider-agnostic contracts shared by adapters and the service
layer:

- Interfaces: the ``ProviderAdapter`` capability set
- Models: descriptors, requests, usage
- Registry: the immutable model catalog lookup
- Errors: the normalized error taxonomy
- Streaming: events, handles and the session state machine
- Factory: lazy creation of provider adapters by tag
"""

from .cancellation import CancellationToken
from .errors import ErrorKind, ErrorNormalizer, GatewayError, NormalizedError, normalize_error
from .factory import ProviderFactory, UnknownProviderError
from .interfaces import ProviderAdapter
from .limiter import UpstreamLimiter
from .models import (
    ChatOptions,
    ChatRequest,
    ContentPart,
    JsonModeStrategy,
    Message,
    ModelDescriptor,
    ProviderTag,
    Role,
    UsageStats,
)
from .registry import ModelRegistry, ModelRegistryError
from .streaming import (
    BaseStreamingAdapter,
    DeltaKind,
    EventType,
    SessionState,
    StreamEvent,
    StreamHandle,
    StreamSession,
)
from .timeouts import TimeoutConfig, get_timeout_config, operation_timeout
from .validation import clamp_thinking_budget, validate_request

__all__ = [
    "CancellationToken",
    "ErrorKind",
    "ErrorNormalizer",
    "GatewayError",
    "NormalizedError",
    "normalize_error",
    "ProviderFactory",
    "UnknownProviderError",
    "ProviderAdapter",
    "UpstreamLimiter",
    "ChatOptions",
    "ChatRequest",
    "ContentPart",
    "JsonModeStrategy",
    "Message",
    "ModelDescriptor",
    "ProviderTag",
    "Role",
    "UsageStats",
    "ModelRegistry",
    "ModelRegistryError",
    "BaseStreamingAdapter",
    "DeltaKind",
    "EventType",
    "SessionState",
    "StreamEvent",
    "StreamHandle",
    "StreamSession",
    "TimeoutConfig",
    "get_timeout_config",
    "operation_timeout",
    "clamp_thinking_budget",
    "validate_request",
]
