"""Immutable capability descriptor for one model."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .json_mode_strategy import JsonModeStrategy
from .provider_tag import ProviderTag
from .ranges import TemperatureRange, ThinkingBudget


@dataclass(frozen=True)
class ModelDescriptor:
    """Everything the gateway needs to know to validate and dispatch a request.

    Descriptors are created once by the registry loader and shared read-only
    by every session that targets the model.
    """

    id: str
    provider: ProviderTag
    max_input_tokens: int
    max_output_tokens: int
    thinking_enabled: bool = False
    thinking_budget: Optional[ThinkingBudget] = None
    recommended_temperature: float = 0.7
    temperature_range: TemperatureRange = TemperatureRange()
    json_mode: JsonModeStrategy = JsonModeStrategy.NONE
    supports_vision: bool = False
    supports_streaming: bool = True
    display_name: Optional[str] = None
    default_max_output_tokens: Optional[int] = None

    @property
    def supports_json_mode(self) -> bool:
        return self.json_mode is not JsonModeStrategy.NONE

    def output_tokens_for(self, requested: Optional[int]) -> int:
        """Resolve the output-token limit for a request."""
        if requested is not None:
            return requested
        if self.default_max_output_tokens is not None:
            return min(self.default_max_output_tokens, self.max_output_tokens)
        return self.max_output_tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "provider": self.provider.value,
            "displayName": self.display_name or self.id,
            "maxInputTokens": self.max_input_tokens,
            "maxOutputTokens": self.max_output_tokens,
            "thinkingEnabled": self.thinking_enabled,
            "thinkingBudget": self.thinking_budget.to_dict() if self.thinking_budget else None,
            "recommendedTemperature": self.recommended_temperature,
            "temperatureRange": self.temperature_range.to_dict(),
            "jsonMode": self.json_mode.value,
            "supportsVision": self.supports_vision,
            "supportsStreaming": self.supports_streaming,
        }


__all__ = ["ModelDescriptor"]
