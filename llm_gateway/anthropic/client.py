"""AnthropicAdapter.

Streams the Messages API through ``AsyncAnthropic`` with
``messages.create(stream=True)`` and translates the raw event stream.
Extended thinking is requested with ``thinking.budget_tokens``; thinking text
arrives as ``thinking_delta`` blocks and is surfaced as thinking chunks.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator

from anthropic import AsyncAnthropic

from ..base.models import ChatRequest, ModelDescriptor
from ..base.streaming import BaseStreamingAdapter, StreamEvent, TranslationState
from .helpers import build_params, translate_event


class AnthropicAdapter(BaseStreamingAdapter):
    """Adapter for the Anthropic Messages API."""

    provider_name = "anthropic"

    def _make_client(self) -> Any:
        return AsyncAnthropic(
            api_key=self._require_api_key(),
            base_url=self._base_url,
            timeout=self._timeouts.http_timeout_seconds,
            max_retries=0,
        )

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._make_client()
        return self._client

    def _build_params(self, request: ChatRequest, descriptor: ModelDescriptor) -> Dict[str, Any]:
        self._require_api_key()
        return build_params(
            request,
            descriptor,
            self._thinking_budget(request, descriptor),
            self._temperature(request, descriptor),
        )

    async def _open_stream(self, params: Dict[str, Any]) -> Any:
        return await self._get_client().messages.create(**params)

    def _translate(self, native: Any, state: TranslationState) -> Iterator[StreamEvent]:
        return translate_event(native, state, self.provider_name)


__all__ = ["AnthropicAdapter"]
