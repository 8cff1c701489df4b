"""GroqAdapter.

Groq exposes the Chat Completions protocol at ``/openai/v1``. Reasoning
models return parsed reasoning in ``delta.reasoning`` when asked with
``reasoning_format="parsed"`` (sent through ``extra_body``). Groq has no
graded effort setting, so the budget only switches reasoning output on.
Usage arrives either in the final chunk's ``usage`` or in ``x_groq.usage``.
"""

from __future__ import annotations

from typing import Any, Dict

from openai import AsyncOpenAI

from ..base.models import ModelDescriptor
from ..base.openai_style_parts import BaseOpenAIStyleAdapter


class GroqAdapter(BaseOpenAIStyleAdapter):
    provider_name = "groq"
    reasoning_field = "reasoning"
    effort_levels = ()

    def _make_client(self) -> Any:
        return AsyncOpenAI(
            api_key=self._require_api_key(),
            base_url=self._base_url,
            timeout=self._timeouts.http_timeout_seconds,
            max_retries=0,
        )

    def _reasoning_params(self, budget: int, descriptor: ModelDescriptor) -> Dict[str, Any]:
        return {"extra_body": {"reasoning_format": "parsed"}}


__all__ = ["GroqAdapter"]
