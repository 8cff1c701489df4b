"""Numeric ranges carried by model descriptors."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ThinkingBudget:
    """Inclusive thinking-token range with the value used when none is requested."""

    min: int
    max: int
    default: int

    def clamp(self, value: int) -> int:
        """Return ``value`` bounded to ``[min, max]``."""
        return max(self.min, min(self.max, value))

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max, "default": self.default}


@dataclass(frozen=True)
class TemperatureRange:
    """Inclusive range of accepted sampling temperatures."""

    min: float = 0.0
    max: float = 2.0

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}


__all__ = ["ThinkingBudget", "TemperatureRange"]
