"""Gemini helpers module.

Translation between the gateway models and the ``google-genai`` SDK:
contents and generation config on the way in, streamed
``GenerateContentResponse`` chunks on the way out. Plain dicts are used for
SDK inputs; the SDK validates them into its own types.
"""

from __future__ import annotations

import base64
import mimetypes
from typing import Any, Dict, Iterator, List, Optional

from ..base.errors import SAFE_MESSAGES, ErrorKind, GatewayError
from ..base.models import JSON_MODE_INSTRUCTION, ChatRequest, JsonModeStrategy, Message, ModelDescriptor
from ..base.streaming import DeltaKind, StreamEvent, TranslationState
from ..base.utils import parse_data_url, system_with_instruction

BLOCKED_FINISH_REASONS = frozenset({"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"})

_ROLES = {"user": "user", "assistant": "model"}


def _image_part(url: Optional[str]) -> Dict[str, Any]:
    inline = parse_data_url(url)
    if inline is not None:
        mime_type, data = inline
        return {"inline_data": {"mime_type": mime_type, "data": base64.b64decode(data)}}
    mime_type, _ = mimetypes.guess_type(url or "")
    file_data: Dict[str, Any] = {"file_uri": url}
    if mime_type:
        file_data["mime_type"] = mime_type
    return {"file_data": file_data}


def to_content(message: Message) -> Dict[str, Any]:
    """Render one non-system message as a Gemini ``Content`` mapping."""
    parts: List[Dict[str, Any]] = []
    for part in message.parts:
        if part.is_image:
            parts.append(_image_part(part.url))
        elif part.text:
            parts.append({"text": part.text})
    return {"role": _ROLES.get(message.role, "user"), "parts": parts}


def build_params(request: ChatRequest, descriptor: ModelDescriptor, thinking_budget: Optional[int], temperature: float) -> Dict[str, Any]:
    """Build ``generate_content_stream`` keyword arguments."""
    system, rest = request.split_system()
    config: Dict[str, Any] = {
        "temperature": temperature,
        "max_output_tokens": descriptor.output_tokens_for(request.options.max_output_tokens),
    }
    if request.options.json_mode:
        if descriptor.json_mode is JsonModeStrategy.RESPONSE_MIME_TYPE:
            config["response_mime_type"] = "application/json"
        else:
            system = system_with_instruction(system, JSON_MODE_INSTRUCTION)
    if system:
        config["system_instruction"] = system
    if thinking_budget is not None:
        config["thinking_config"] = {"thinking_budget": thinking_budget, "include_thoughts": True}
    return {
        "model": descriptor.id,
        "contents": [to_content(m) for m in rest],
        "config": config,
    }


def _reason_name(reason: Any) -> Optional[str]:
    if reason is None:
        return None
    return getattr(reason, "name", None) or str(reason).rsplit(".", 1)[-1]


def _content_policy(provider: str) -> GatewayError:
    return GatewayError(
        kind=ErrorKind.CONTENT_POLICY,
        message=SAFE_MESSAGES[ErrorKind.CONTENT_POLICY],
        provider=provider,
    )


def translate_chunk(chunk: Any, state: TranslationState, provider: str = "google") -> Iterator[StreamEvent]:
    """Map one streamed response chunk to normalized chunk events."""
    usage = getattr(chunk, "usage_metadata", None)
    if usage is not None:
        output = (getattr(usage, "candidates_token_count", None) or 0) + (
            getattr(usage, "thoughts_token_count", None) or 0
        )
        state.usage.update(input_tokens=getattr(usage, "prompt_token_count", None), output_tokens=output)
    feedback = getattr(chunk, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", None):
        raise _content_policy(provider)
    candidates = getattr(chunk, "candidates", None) or []
    if not candidates:
        return
    candidate = candidates[0]
    content = getattr(candidate, "content", None)
    for part in getattr(content, "parts", None) or []:
        text = getattr(part, "text", None)
        if not text:
            continue
        kind = DeltaKind.THINKING if getattr(part, "thought", None) else DeltaKind.TEXT
        yield StreamEvent.chunk(text, kind)
    reason = _reason_name(getattr(candidate, "finish_reason", None))
    if reason:
        state.finish_reason = reason
    if reason in BLOCKED_FINISH_REASONS:
        raise _content_policy(provider)


__all__ = ["build_params", "to_content", "translate_chunk", "BLOCKED_FINISH_REASONS"]
