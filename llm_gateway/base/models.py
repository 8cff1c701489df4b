"""Gateway domain models (public facade).

Plain dataclasses shared by the registry, validation, adapters and sessions.
Inbound wire validation lives in ``llm_gateway.base.dto``.
"""

from .models_parts import (
    ChatOptions,
    ChatRequest,
    ContentPart,
    JSON_MODE_INSTRUCTION,
    JsonModeStrategy,
    Message,
    ModelDescriptor,
    ProviderTag,
    Role,
    TemperatureRange,
    ThinkingBudget,
    UsageStats,
)

__all__ = [
    "ChatOptions",
    "ChatRequest",
    "ContentPart",
    "JsonModeStrategy",
    "JSON_MODE_INSTRUCTION",
    "Message",
    "ModelDescriptor",
    "ProviderTag",
    "Role",
    "TemperatureRange",
    "ThinkingBudget",
    "UsageStats",
]
