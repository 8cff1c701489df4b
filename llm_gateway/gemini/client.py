"""GeminiAdapter.

Streams through the ``google-genai`` SDK
(``client.aio.models.generate_content_stream``). Thinking models receive
``thinking_config`` with ``include_thoughts`` so thought summaries stream
as parts flagged ``thought=True``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator

from google import genai

from ..base.models import ChatRequest, ModelDescriptor
from ..base.streaming import BaseStreamingAdapter, StreamEvent, TranslationState
from .helpers import build_params, translate_chunk


class GeminiAdapter(BaseStreamingAdapter):
    """Adapter for Google Gemini models."""

    provider_name = "google"

    def _make_client(self) -> Any:
        http_options: Dict[str, Any] = {"timeout": int(self._timeouts.http_timeout_seconds * 1000)}
        if self._base_url:
            http_options["base_url"] = self._base_url
        return genai.Client(api_key=self._require_api_key(), http_options=http_options)

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
        return await self._get_client().aio.models.generate_content_stream(**params)

    def _translate(self, native: Any, state: TranslationState) -> Iterator[StreamEvent]:
        return translate_chunk(native, state, self.provider_name)


__all__ = ["GeminiAdapter"]
