"""Gemini translation helpers and adapter lifecycle (google-genai shapes)."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from llm_gateway.base.errors import ErrorKind, GatewayError
from llm_gateway.base.streaming import DeltaKind, EventType, TranslationState
from llm_gateway.config import GatewaySettings
from llm_gateway.gemini import GeminiAdapter
from llm_gateway.gemini.helpers import build_params, translate_chunk
from llm_gateway.service.gateway import Gateway

from .helpers import FakeUpstream


def _prepare(registry, payload):
    return Gateway(registry, settings=GatewaySettings()).prepare(payload, request_id="g1")


def _params(registry, payload) -> Dict[str, Any]:
    request, descriptor = _prepare(registry, payload)
    temperature = request.options.temperature if request.options.temperature is not None else descriptor.recommended_temperature
    return build_params(request, descriptor, request.thinking_budget, temperature)


def _part(text: str, thought: bool = False):
    return SimpleNamespace(text=text, thought=thought)


def _response(*parts, finish=None, usage=None, feedback=None):
    candidate = SimpleNamespace(content=SimpleNamespace(parts=list(parts)), finish_reason=finish)
    return SimpleNamespace(candidates=[candidate], usage_metadata=usage, prompt_feedback=feedback)


def _usage(prompt: int, candidates: int, thoughts: int = 0):
    return SimpleNamespace(prompt_token_count=prompt, candidates_token_count=candidates, thoughts_token_count=thoughts)


def test_build_params_for_plain_model(registry):
    params = _params(
        registry,
        {
            "model": "gemini-2.0-flash",
            "systemPrompt": "Be terse.",
            "message": [
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello"},
                {"role": "user", "content": "Bye"},
            ],
        },
    )

    assert params["model"] == "gemini-2.0-flash"  # nosec B101
    assert [c["role"] for c in params["contents"]] == ["user", "model", "user"]  # nosec B101
    assert params["contents"][0]["parts"] == [{"text": "Hi"}]  # nosec B101
    config = params["config"]
    assert config == {"temperature": 0.7, "max_output_tokens": 8192, "system_instruction": "Be terse."}  # nosec B101


def test_build_params_thinking_and_json(registry):
    params = _params(
        registry,
        {"model": "gemini-2.5-pro", "message": "Solve", "options": {"thinkingBudget": 50, "jsonMode": True, "maxOutputTokens": 1000}},
    )

    config = params["config"]
    assert config["thinking_config"] == {"thinking_budget": 128, "include_thoughts": True}  # nosec B101
    assert config["response_mime_type"] == "application/json"  # nosec B101
    assert config["max_output_tokens"] == 1000  # nosec B101
    assert "system_instruction" not in config  # nosec B101


def test_inline_and_remote_images(registry):
    params = _params(
        registry,
        {
            "model": "gemini-2.5-flash",
            "message": [
                {
                    "role": "user",
                    "content": [
                        {"type": "image", "url": "data:image/png;base64,aGk="},
                        {"type": "image", "url": "https://x/photo.jpg"},
                    ],
                }
            ],
        },
    )

    inline, remote = params["contents"][0]["parts"]
    assert inline == {"inline_data": {"mime_type": "image/png", "data": b"hi"}}  # nosec B101
    assert remote == {"file_data": {"file_uri": "https://x/photo.jpg", "mime_type": "image/jpeg"}}  # nosec B101


def test_translate_chunk_splits_thoughts_and_counts_usage():
    state = TranslationState()

    events = list(translate_chunk(_response(_part("Weighing. ", thought=True), _part("Answer")), state))
    list(translate_chunk(_response(finish="STOP", usage=_usage(10, 5, 3)), state))

    assert [(e.delta_kind, e.content) for e in events] == [(DeltaKind.THINKING, "Weighing. "), (DeltaKind.TEXT, "Answer")]  # nosec B101
    assert (state.usage.input_tokens, state.usage.output_tokens) == (10, 8)  # nosec B101
    assert state.finish_reason == "STOP"  # nosec B101


@pytest.mark.parametrize(
    "chunk",
    [
        _response(_part("x"), finish="SAFETY"),
        _response(finish=SimpleNamespace(name="PROHIBITED_CONTENT")),
        SimpleNamespace(candidates=[], usage_metadata=None, prompt_feedback=SimpleNamespace(block_reason="OTHER")),
    ],
    ids=["safety", "prohibited-enum", "prompt-blocked"],
)
def test_blocked_output_is_content_policy(chunk):
    with pytest.raises(GatewayError) as ei:
        list(translate_chunk(chunk, TranslationState()))
    assert ei.value.kind is ErrorKind.CONTENT_POLICY  # nosec B101


class _FakeGenai:
    def __init__(self, chunks: List[Any]) -> None:
        self.calls: List[Dict[str, Any]] = []
        self._chunks = chunks
        self.aio = SimpleNamespace(models=SimpleNamespace(generate_content_stream=self._generate))

    async def _generate(self, **params: Any) -> FakeUpstream:
        self.calls.append(params)
        return FakeUpstream(self._chunks)


async def test_adapter_streams_and_reports_usage(monkeypatch, registry, timeouts):
    client = _FakeGenai(
        [
            _response(_part("Think. ", thought=True)),
            _response(_part("Done"), finish="STOP", usage=_usage(4, 2, 6)),
        ]
    )
    adapter = GeminiAdapter(api_key="AIza-live-1234", timeouts=timeouts)
    monkeypatch.setattr(adapter, "_make_client", lambda: client)
    request, descriptor = _prepare(registry, {"model": "gemini-2.5-flash", "message": "Go"})

    events = [e async for e in adapter.stream(request, descriptor)]

    assert [e.type for e in events] == [EventType.CHUNK, EventType.CHUNK, EventType.USAGE, EventType.DONE]  # nosec B101
    assert events[2].usage.to_dict() == {"inputTokens": 4, "outputTokens": 8}  # nosec B101
    assert events[3].finish_reason == "STOP"  # nosec B101
    assert client.calls[0]["config"]["thinking_config"]["thinking_budget"] == 8192  # nosec B101


async def test_google_key_alias_is_honoured(monkeypatch, timeouts):
    monkeypatch.setenv("GEMINI_API_KEY", "AIza-live-5678")

    assert GeminiAdapter(timeouts=timeouts).is_configured is True  # nosec B101
