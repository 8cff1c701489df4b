"""Optional generation overrides attached to a chat request."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ChatOptions:
    temperature: Optional[float] = None
    thinking_budget: Optional[int] = None
    json_mode: bool = False
    max_output_tokens: Optional[int] = None


__all__ = ["ChatOptions"]
