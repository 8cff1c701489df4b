"""Normalized chat request handed to provider adapters."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .chat_options import ChatOptions
from .message import Message


@dataclass(frozen=True)
class ChatRequest:
    """A validated request as it travels from transport to adapter.

    ``thinking_budget`` is filled in by validation with the value already
    clamped to the model's range; adapters never see the raw client value.
    """

    request_id: str
    model: str
    messages: Sequence[Message]
    options: ChatOptions = field(default_factory=ChatOptions)
    thinking_budget: Optional[int] = None

    @property
    def wants_vision(self) -> bool:
        return any(m.has_images for m in self.messages)

    def split_system(self) -> Tuple[Optional[str], List[Message]]:
        """Return the joined system prompt and the remaining conversation."""
        system = [m.text for m in self.messages if m.role == "system" and m.text]
        rest = [m for m in self.messages if m.role != "system"]
        return ("\n\n".join(system) or None), rest


__all__ = ["ChatRequest"]
