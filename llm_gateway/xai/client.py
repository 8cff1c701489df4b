"""XAIAdapter.

xAI serves an OpenAI-compatible endpoint, so the adapter reuses
``BaseOpenAIStyleAdapter`` with the xAI base URL. Grok reasoning models
accept ``reasoning_effort`` of ``low`` or ``high`` and stream their
reasoning as ``delta.reasoning_content``.
"""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from ..base.openai_style_parts import BaseOpenAIStyleAdapter


class XAIAdapter(BaseOpenAIStyleAdapter):
    provider_name = "xai"
    reasoning_field = "reasoning_content"
    effort_levels = ("low", "high")

    def _make_client(self) -> Any:
        return AsyncOpenAI(
            api_key=self._require_api_key(),
            base_url=self._base_url,
            timeout=self._timeouts.http_timeout_seconds,
            max_retries=0,
        )


__all__ = ["XAIAdapter"]
