"""
Pydantic DTOs describing the model catalog document.

The catalog is a YAML document with an optional ``default_model`` and a list
of ``models``. Each entry validates into a frozen :class:`ModelDescriptor`.
Any violation raises ``ValidationError`` which the registry loader turns into
a startup failure.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import JsonModeStrategy, ModelDescriptor, ProviderTag, TemperatureRange, ThinkingBudget

# Anthropic caps sampling temperature at 1.0; the others accept up to 2.0.
_TEMPERATURE_DEFAULTS: Dict[ProviderTag, TemperatureRange] = {
    ProviderTag.ANTHROPIC: TemperatureRange(0.0, 1.0),
}


class ThinkingBudgetDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min: int = Field(ge=0)
    max: int = Field(gt=0)
    default: int = Field(ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "ThinkingBudgetDTO":
        if not self.min <= self.default <= self.max:
            raise ValueError("thinking budget must satisfy min <= default <= max")
        return self


class TemperatureRangeDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min: float = Field(default=0.0, ge=0.0)
    max: float = Field(default=2.0, gt=0.0)

    @model_validator(mode="after")
    def _ordered(self) -> "TemperatureRangeDTO":
        if self.min > self.max:
            raise ValueError("temperature range min must not exceed max")
        return self


class CatalogEntryDTO(BaseModel):
    """One model entry of the catalog."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    provider: ProviderTag
    display_name: Optional[str] = None
    max_input_tokens: int = Field(gt=0)
    max_output_tokens: int = Field(gt=0)
    default_max_output_tokens: Optional[int] = Field(default=None, gt=0)
    thinking_enabled: bool = False
    thinking_budget: Optional[ThinkingBudgetDTO] = None
    recommended_temperature: float = Field(default=0.7, ge=0.0)
    temperature_range: Optional[TemperatureRangeDTO] = None
    json_mode: JsonModeStrategy = JsonModeStrategy.NONE
    supports_vision: bool = False
    supports_streaming: bool = True

    @model_validator(mode="after")
    def _consistent(self) -> "CatalogEntryDTO":
        if self.thinking_enabled and self.thinking_budget is None:
            raise ValueError(f"model '{self.id}' enables thinking without a thinking_budget")
        if self.default_max_output_tokens and self.default_max_output_tokens > self.max_output_tokens:
            raise ValueError(f"model '{self.id}' default_max_output_tokens exceeds max_output_tokens")
        return self

    def to_descriptor(self) -> ModelDescriptor:
        if self.temperature_range is not None:
            temperature_range = TemperatureRange(self.temperature_range.min, self.temperature_range.max)
        else:
            temperature_range = _TEMPERATURE_DEFAULTS.get(self.provider, TemperatureRange())
        budget = None
        if self.thinking_enabled and self.thinking_budget is not None:
            budget = ThinkingBudget(self.thinking_budget.min, self.thinking_budget.max, self.thinking_budget.default)
        return ModelDescriptor(
            id=self.id,
            provider=self.provider,
            max_input_tokens=self.max_input_tokens,
            max_output_tokens=self.max_output_tokens,
            thinking_enabled=self.thinking_enabled,
            thinking_budget=budget,
            recommended_temperature=self.recommended_temperature,
            temperature_range=temperature_range,
            json_mode=self.json_mode,
            supports_vision=self.supports_vision,
            supports_streaming=self.supports_streaming,
            display_name=self.display_name,
            default_max_output_tokens=self.default_max_output_tokens,
        )


class CatalogDocumentDTO(BaseModel):
    """Top-level catalog document."""

    model_config = ConfigDict(extra="forbid")

    default_model: Optional[str] = None
    models: List[CatalogEntryDTO] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_ids(self) -> "CatalogDocumentDTO":
        seen = set()
        for entry in self.models:
            if entry.id in seen:
                raise ValueError(f"duplicate model id '{entry.id}'")
            seen.add(entry.id)
        if self.default_model is not None and self.default_model not in seen:
            raise ValueError(f"default_model '{self.default_model}' is not in the catalog")
        return self


__all__ = [
    "ThinkingBudgetDTO",
    "TemperatureRangeDTO",
    "CatalogEntryDTO",
    "CatalogDocumentDTO",
]
