"""Domain model parts (one class per module); see ``llm_gateway.base.models``."""

from .provider_tag import ProviderTag
from .json_mode_strategy import JSON_MODE_INSTRUCTION, JsonModeStrategy
from .ranges import TemperatureRange, ThinkingBudget
from .model_descriptor import ModelDescriptor
from .message import ContentPart, Message, Role
from .chat_options import ChatOptions
from .chat_request import ChatRequest
from .usage import UsageStats

__all__ = [
    "ProviderTag",
    "JsonModeStrategy",
    "JSON_MODE_INSTRUCTION",
    "TemperatureRange",
    "ThinkingBudget",
    "ModelDescriptor",
    "ContentPart",
    "Message",
    "Role",
    "ChatOptions",
    "ChatRequest",
    "UsageStats",
]
