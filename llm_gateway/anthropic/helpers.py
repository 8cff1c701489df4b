"""Anthropic helpers module.

Purpose:
- Side-effect-free translation between the gateway models and the Anthropic
  Messages API: parameter building, content blocks, and stream event
  translation. Keeps ``client.py`` limited to SDK wiring.

Stream events handled (``messages.create(stream=True)``):
- ``message_start``: input token count (and initial output count)
- ``content_block_delta``: ``text_delta`` and ``thinking_delta``
- ``message_delta``: ``stop_reason`` and the running output token count
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from ..base.errors import SAFE_MESSAGES, ErrorKind, GatewayError
from ..base.models import JSON_MODE_INSTRUCTION, ChatRequest, JsonModeStrategy, Message, ModelDescriptor
from ..base.streaming import DeltaKind, StreamEvent, TranslationState
from ..base.utils import parse_data_url, system_with_instruction

REFUSAL_STOP_REASON = "refusal"


def _image_block(url: Optional[str]) -> Dict[str, Any]:
    inline = parse_data_url(url)
    if inline is not None:
        media_type, data = inline
        return {"type": "image", "source": {"type": "base64", "media_type": media_type, "data": data}}
    return {"type": "image", "source": {"type": "url", "url": url}}


def to_anthropic_message(message: Message) -> Dict[str, Any]:
    """Render one non-system message; text-only content stays a plain string."""
    if not message.has_images:
        return {"role": message.role, "content": message.text}
    blocks: List[Dict[str, Any]] = []
    for part in message.parts:
        if part.is_image:
            blocks.append(_image_block(part.url))
        elif part.text:
            blocks.append({"type": "text", "text": part.text})
    return {"role": message.role, "content": blocks}


def build_params(request: ChatRequest, descriptor: ModelDescriptor, thinking_budget: Optional[int], temperature: float) -> Dict[str, Any]:
    """Build ``client.messages.create`` parameters.

    Notes:
        - System messages are lifted into ``system``; JSON mode appends an
          instruction there since the API has no native switch.
        - ``max_tokens`` is mandatory. With thinking enabled it must exceed
          ``budget_tokens``, so the budget is added to the output allowance
          and the sum capped at the model limit.
        - Temperature is omitted when thinking is on (the API rejects it).
    """
    system, rest = request.split_system()
    if request.options.json_mode and descriptor.json_mode is not JsonModeStrategy.NONE:
        system = system_with_instruction(system, JSON_MODE_INSTRUCTION)
    max_tokens = descriptor.output_tokens_for(request.options.max_output_tokens)
    params: Dict[str, Any] = {
        "model": descriptor.id,
        "messages": [to_anthropic_message(m) for m in rest],
        "stream": True,
    }
    if system:
        params["system"] = system
    if thinking_budget is not None:
        params["thinking"] = {"type": "enabled", "budget_tokens": thinking_budget}
        params["max_tokens"] = min(descriptor.max_output_tokens, thinking_budget + max_tokens)
    else:
        params["max_tokens"] = max_tokens
        params["temperature"] = temperature
    return params


def translate_event(event: Any, state: TranslationState, provider: str = "anthropic") -> Iterator[StreamEvent]:
    """Map one raw Anthropic stream event to normalized chunk events."""
    kind = getattr(event, "type", None)
    if kind == "message_start":
        usage = getattr(getattr(event, "message", None), "usage", None)
        if usage is not None:
            state.usage.update(
                input_tokens=getattr(usage, "input_tokens", None),
                output_tokens=getattr(usage, "output_tokens", None),
            )
    elif kind == "content_block_delta":
        delta = getattr(event, "delta", None)
        delta_type = getattr(delta, "type", None)
        if delta_type == "text_delta" and getattr(delta, "text", None):
            yield StreamEvent.chunk(delta.text)
        elif delta_type == "thinking_delta" and getattr(delta, "thinking", None):
            yield StreamEvent.chunk(delta.thinking, DeltaKind.THINKING)
    elif kind == "message_delta":
        usage = getattr(event, "usage", None)
        if usage is not None:
            state.usage.update(
                input_tokens=getattr(usage, "input_tokens", None),
                output_tokens=getattr(usage, "output_tokens", None),
            )
        stop_reason = getattr(getattr(event, "delta", None), "stop_reason", None)
        if stop_reason:
            state.finish_reason = stop_reason
        if stop_reason == REFUSAL_STOP_REASON:
            raise GatewayError(
                kind=ErrorKind.CONTENT_POLICY,
                message=SAFE_MESSAGES[ErrorKind.CONTENT_POLICY],
                provider=provider,
            )


__all__ = ["build_params", "to_anthropic_message", "translate_event", "REFUSAL_STOP_REASON"]
