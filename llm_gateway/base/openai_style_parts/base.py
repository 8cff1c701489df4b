"""BaseOpenAIStyleAdapter: shared adapter for Chat Completions compatible vendors.

Purpose:
- One translation for OpenAI, xAI and Groq, which all speak the Chat
  Completions streaming protocol through the ``openai`` SDK.

Per-vendor knobs (class attributes):
- ``max_tokens_param``: name of the output-token limit parameter.
- ``reasoning_field``: delta attribute carrying reasoning text, if the vendor
  streams it at all.
- ``effort_levels``: ``reasoning_effort`` values the vendor accepts, lowest
  first; an empty tuple means the parameter is never sent.
- ``temperature_with_thinking``: whether temperature may accompany a
  thinking request.

Timeout strategy:
- The SDK client gets the HTTP timeout from ``TimeoutConfig`` and no SDK
  retries; start-phase timeout and retry belong to ``BaseStreamingAdapter``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional, Sequence

from ..errors import SAFE_MESSAGES, ErrorKind, GatewayError
from ..models import JSON_MODE_INSTRUCTION, ChatRequest, JsonModeStrategy, ModelDescriptor
from ..streaming import BaseStreamingAdapter, DeltaKind, StreamEvent, TranslationState
from .style_helpers import (
    EFFORT_LEVELS,
    apply_usage,
    build_openai_messages,
    delta_field,
    extract_usage,
    first_choice,
    reasoning_effort_for,
)

CONTENT_FILTER_FINISH = "content_filter"


class BaseOpenAIStyleAdapter(BaseStreamingAdapter):
    """Reusable base class for OpenAI-compatible providers.

    Subclasses must implement ``_make_client()`` returning an ``AsyncOpenAI``
    instance (or an object with the same ``chat.completions.create`` shape).
    """

    max_tokens_param: str = "max_tokens"
    reasoning_field: Optional[str] = None
    effort_levels: Sequence[str] = EFFORT_LEVELS
    temperature_with_thinking: bool = True

    def _make_client(self) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._make_client()
        return self._client

    # ----- request -----
    def _build_params(self, request: ChatRequest, descriptor: ModelDescriptor) -> Dict[str, Any]:
        self._require_api_key()
        messages = build_openai_messages(request)
        params: Dict[str, Any] = {
            "model": descriptor.id,
            "messages": messages,
            "stream": True,
            "stream_options": {"include_usage": True},
            self.max_tokens_param: descriptor.output_tokens_for(request.options.max_output_tokens),
        }
        budget = self._thinking_budget(request, descriptor)
        if budget is None or self.temperature_with_thinking:
            params["temperature"] = self._temperature(request, descriptor)
        if budget is not None:
            params.update(self._reasoning_params(budget, descriptor))
        if request.options.json_mode:
            if descriptor.json_mode is JsonModeStrategy.RESPONSE_FORMAT:
                params["response_format"] = {"type": "json_object"}
            else:
                messages.insert(0, {"role": "system", "content": JSON_MODE_INSTRUCTION})
        return params

    def _reasoning_params(self, budget: int, descriptor: ModelDescriptor) -> Dict[str, Any]:
        effort = reasoning_effort_for(budget, descriptor.thinking_budget, self.effort_levels)
        return {"reasoning_effort": effort} if effort else {}

    async def _open_stream(self, params: Dict[str, Any]) -> Any:
        return await self._get_client().chat.completions.create(**params)

    # ----- response -----
    def _translate(self, native: Any, state: TranslationState) -> Iterator[StreamEvent]:
        apply_usage(state.usage, extract_usage(native))
        choice = first_choice(native)
        if choice is None:
            return
        delta = getattr(choice, "delta", None)
        if thinking := delta_field(delta, self.reasoning_field):
            yield StreamEvent.chunk(thinking, DeltaKind.THINKING)
        if text := delta_field(delta, "content"):
            yield StreamEvent.chunk(text)
        finish = getattr(choice, "finish_reason", None)
        if finish:
            state.finish_reason = finish
        if finish == CONTENT_FILTER_FINISH:
            raise GatewayError(
                kind=ErrorKind.CONTENT_POLICY,
                message=SAFE_MESSAGES[ErrorKind.CONTENT_POLICY],
                provider=self.provider_name,
            )


__all__ = ["BaseOpenAIStyleAdapter", "CONTENT_FILTER_FINISH"]
