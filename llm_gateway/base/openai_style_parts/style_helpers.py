"""
Helper utilities for OpenAI-compatible Chat Completions adapters.

Purpose:
- Translate normalized messages into the Chat Completions message list.
- Express a clamped thinking budget as a ``reasoning_effort`` level.
- Read text, reasoning and usage out of streamed chunk objects.

No network I/O happens here; functions only prepare inputs or interpret
outputs, so they are exercised directly with ``SimpleNamespace`` chunks.
"""

from __future__ import annotations

import typing as _t

from ..models import ChatRequest, Message, ThinkingBudget, UsageStats

EFFORT_LEVELS: tuple[str, ...] = ("low", "medium", "high")


def _message_content(message: Message) -> _t.Any:
    if not message.has_images:
        return message.text
    parts: list[dict] = []
    for part in message.parts:
        if part.is_image:
            parts.append({"type": "image_url", "image_url": {"url": part.url}})
        elif part.text:
            parts.append({"type": "text", "text": part.text})
    return parts


def build_openai_messages(request: ChatRequest) -> list[dict]:
    """Render the conversation with system messages kept inline.

    Image parts become ``image_url`` content entries; text-only messages use
    the plain string form.
    """
    return [{"role": m.role, "content": _message_content(m)} for m in request.messages]


def reasoning_effort_for(
    budget: int | None,
    range_: ThinkingBudget | None,
    levels: _t.Sequence[str] = EFFORT_LEVELS,
) -> str | None:
    """Map a budget to an effort level by its position inside the model range.

    The range is split into ``len(levels)`` equal bands; ``None`` when the
    model has no thinking range or no budget was resolved.
    """
    if budget is None or range_ is None or not levels:
        return None
    span = range_.max - range_.min
    if span <= 0:
        return levels[-1]
    position = (budget - range_.min) / span
    index = min(int(position * len(levels)), len(levels) - 1)
    return levels[max(index, 0)]


def first_choice(chunk: _t.Any) -> _t.Any:
    """Return ``chunk.choices[0]`` or ``None`` (usage-only chunks have none)."""
    choices = getattr(chunk, "choices", None) or []
    return choices[0] if choices else None


def delta_field(delta: _t.Any, name: str | None) -> str | None:
    """Read a string field from a delta object or its ``model_extra`` mapping.

    Vendor extensions such as ``reasoning_content`` are not declared on the
    SDK's delta model and land in pydantic's extra storage.
    """
    if delta is None or not name:
        return None
    value = getattr(delta, name, None)
    if value is None:
        extra = getattr(delta, "model_extra", None)
        if isinstance(extra, dict):
            value = extra.get(name)
    return value if isinstance(value, str) and value else None


def extract_usage(chunk: _t.Any) -> _t.Any:
    """Usage object of a chunk: ``chunk.usage`` or Groq's ``x_groq.usage``."""
    usage = getattr(chunk, "usage", None)
    if usage is not None:
        return usage
    x_groq = getattr(chunk, "x_groq", None)
    if x_groq is None:
        extra = getattr(chunk, "model_extra", None)
        if isinstance(extra, dict):
            x_groq = extra.get("x_groq")
    if isinstance(x_groq, dict):
        return x_groq.get("usage")
    return getattr(x_groq, "usage", None)


def apply_usage(stats: UsageStats, usage: _t.Any) -> None:
    """Copy prompt/completion token counts (object or mapping) into ``stats``."""
    if usage is None:
        return
    if isinstance(usage, dict):
        stats.update(input_tokens=usage.get("prompt_tokens"), output_tokens=usage.get("completion_tokens"))
        return
    stats.update(
        input_tokens=getattr(usage, "prompt_tokens", None),
        output_tokens=getattr(usage, "completion_tokens", None),
    )


__all__ = [
    "EFFORT_LEVELS",
    "build_openai_messages",
    "reasoning_effort_for",
    "first_choice",
    "delta_field",
    "extract_usage",
    "apply_usage",
]
