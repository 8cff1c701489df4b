"""Mutable state shared between an adapter's translator calls for one stream."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..models import UsageStats


@dataclass
class TranslationState:
    """Usage totals and stop reason collected while translating chunks."""

    usage: UsageStats = field(default_factory=UsageStats)
    finish_reason: Optional[str] = None


__all__ = ["TranslationState"]
