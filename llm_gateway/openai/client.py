"""OpenAIAdapter.

Streams Chat Completions through ``AsyncOpenAI``. Reasoning models take the
thinking budget as ``reasoning_effort``, reject ``temperature`` and do not
stream their reasoning, so no thinking deltas are produced for OpenAI.
"""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from ..base.openai_style_parts import BaseOpenAIStyleAdapter


class OpenAIAdapter(BaseOpenAIStyleAdapter):
    provider_name = "openai"
    max_tokens_param = "max_completion_tokens"
    temperature_with_thinking = False

    def _make_client(self) -> Any:
        return AsyncOpenAI(
            api_key=self._require_api_key(),
            base_url=self._base_url,
            timeout=self._timeouts.http_timeout_seconds,
            max_retries=0,
        )


__all__ = ["OpenAIAdapter"]
