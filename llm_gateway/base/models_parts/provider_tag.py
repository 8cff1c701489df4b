"""Closed set of upstream provider tags."""
from __future__ import annotations

from enum import Enum


class ProviderTag(str, Enum):
    """Upstream vendor a model descriptor dispatches to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    XAI = "xai"
    GROQ = "groq"


__all__ = ["ProviderTag"]
