"""OpenAI, xAI and Groq adapters against a fake ``AsyncOpenAI`` client.

The fake records the parameters passed to ``chat.completions.create`` and
streams ``SimpleNamespace`` chunks shaped like the SDK's objects, so the
real translation and lifecycle code runs without network access.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from llm_gateway.base.errors import ErrorKind
from llm_gateway.base.resilience.retry import NO_RETRY
from llm_gateway.base.streaming import DeltaKind, EventType
from llm_gateway.config import GatewaySettings
from llm_gateway.groq import GroqAdapter
from llm_gateway.openai import OpenAIAdapter
from llm_gateway.service.gateway import Gateway
from llm_gateway.xai import XAIAdapter

from .helpers import FakeUpstream, wait_until


class _FakeClient:
    def __init__(self, chunks: List[Any], fail_with: Optional[Exception] = None) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.streams: List[FakeUpstream] = []
        self._chunks = chunks
        self._fail_with = fail_with
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **params: Any) -> FakeUpstream:
        self.calls.append(params)
        if self._fail_with is not None:
            raise self._fail_with
        stream = FakeUpstream(self._chunks)
        self.streams.append(stream)
        return stream


def _chunk(content=None, *, finish=None, **delta_extra):
    delta = SimpleNamespace(content=content, **delta_extra)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish)], usage=None)


def _usage(prompt: int, completion: int):
    return SimpleNamespace(choices=[], usage=SimpleNamespace(prompt_tokens=prompt, completion_tokens=completion))


def _prepare(registry, payload):
    return Gateway(registry, settings=GatewaySettings()).prepare(payload, request_id="a1")


def _install(monkeypatch, adapter, client: _FakeClient):
    monkeypatch.setattr(adapter, "_make_client", lambda: client)
    return adapter


async def _collect(adapter, request, descriptor):
    return [event async for event in adapter.stream(request, descriptor)]


async def test_openai_streams_text_usage_and_done(monkeypatch, registry, timeouts):
    client = _FakeClient([_chunk("Hel"), _chunk("lo", finish="stop"), _usage(5, 2)])
    adapter = _install(monkeypatch, OpenAIAdapter(api_key="sk-live-1234", timeouts=timeouts), client)
    request, descriptor = _prepare(registry, {"model": "gpt-4.1", "message": "Hello"})

    events = await _collect(adapter, request, descriptor)

    assert [e.type for e in events] == [EventType.CHUNK, EventType.CHUNK, EventType.USAGE, EventType.DONE]  # nosec B101
    assert "".join(e.content for e in events[:2]) == "Hello"  # nosec B101
    assert events[2].usage.to_dict() == {"inputTokens": 5, "outputTokens": 2}  # nosec B101
    assert events[3].finish_reason == "stop"  # nosec B101
    params = client.calls[0]
    assert params["model"] == "gpt-4.1" and params["stream"] is True  # nosec B101
    assert params["stream_options"] == {"include_usage": True}  # nosec B101
    assert params["max_completion_tokens"] == 32768  # nosec B101
    assert params["temperature"] == 0.7  # nosec B101
    assert "reasoning_effort" not in params  # nosec B101
    assert params["messages"] == [{"role": "user", "content": "Hello"}]  # nosec B101


@pytest.mark.parametrize("budget,effort", [(30000, "high"), (None, "low")])
async def test_openai_reasoning_model_uses_effort_without_temperature(monkeypatch, registry, timeouts, budget, effort):
    client = _FakeClient([_chunk("ok", finish="stop")])
    adapter = _install(monkeypatch, OpenAIAdapter(api_key="sk-live-1234", timeouts=timeouts), client)
    options = {"temperature": 1.0} if budget is None else {"thinkingBudget": budget, "temperature": 1.0}
    request, descriptor = _prepare(registry, {"model": "o4-mini", "message": "Think", "options": options})

    await _collect(adapter, request, descriptor)

    params = client.calls[0]
    assert params["reasoning_effort"] == effort  # nosec B101
    assert "temperature" not in params  # nosec B101
    assert params["max_completion_tokens"] == 16384  # nosec B101


async def test_openai_json_mode_and_images(monkeypatch, registry, timeouts):
    client = _FakeClient([_chunk("{}", finish="stop")])
    adapter = _install(monkeypatch, OpenAIAdapter(api_key="sk-live-1234", timeouts=timeouts), client)
    payload = {
        "model": "gpt-4o",
        "systemPrompt": "Extract.",
        "message": [
            {
                "role": "user",
                "content": [{"type": "text", "text": "What is this?"}, {"type": "image", "url": "https://x/cat.png"}],
            }
        ],
        "options": {"jsonMode": True, "maxOutputTokens": 256},
    }
    request, descriptor = _prepare(registry, payload)

    await _collect(adapter, request, descriptor)

    params = client.calls[0]
    assert params["response_format"] == {"type": "json_object"}  # nosec B101
    assert params["max_completion_tokens"] == 256  # nosec B101
    assert params["messages"][0] == {"role": "system", "content": "Extract."}  # nosec B101
    assert params["messages"][1]["content"] == [  # nosec B101
        {"type": "text", "text": "What is this?"},
        {"type": "image_url", "image_url": {"url": "https://x/cat.png"}},
    ]


async def test_content_filter_finish_becomes_content_policy(monkeypatch, registry, timeouts):
    client = _FakeClient([_chunk("partial"), _chunk(None, finish="content_filter")])
    adapter = _install(monkeypatch, OpenAIAdapter(api_key="sk-live-1234", timeouts=timeouts), client)
    request, descriptor = _prepare(registry, {"model": "gpt-4.1", "message": "Hi"})

    events = await _collect(adapter, request, descriptor)

    assert [e.type for e in events] == [EventType.CHUNK, EventType.ERROR]  # nosec B101
    assert events[-1].error.kind is ErrorKind.CONTENT_POLICY  # nosec B101
    assert events[-1].error.retriable is False  # nosec B101


@pytest.mark.parametrize("api_key", [None, "your_openai_key_here"])
async def test_missing_or_placeholder_key_is_auth_failure(registry, timeouts, api_key):
    adapter = OpenAIAdapter(api_key=api_key, timeouts=timeouts)
    request, descriptor = _prepare(registry, {"model": "gpt-4.1", "message": "Hi"})

    events = await _collect(adapter, request, descriptor)

    assert adapter.is_configured is False  # nosec B101
    assert [e.type for e in events] == [EventType.ERROR]  # nosec B101
    assert events[0].error.kind is ErrorKind.AUTH_FAILURE  # nosec B101
    assert "your_openai_key_here" not in events[0].error.message  # nosec B101


async def test_start_failure_is_normalized(monkeypatch, registry, timeouts):
    failure = Exception("Rate limit reached for sk-live-1234")
    failure.status_code = 429  # type: ignore[attr-defined]
    client = _FakeClient([], fail_with=failure)
    adapter = _install(
        monkeypatch,
        OpenAIAdapter(api_key="sk-live-1234", timeouts=timeouts, retry_config=NO_RETRY),
        client,
    )
    request, descriptor = _prepare(registry, {"model": "gpt-4.1", "message": "Hi"})

    events = await _collect(adapter, request, descriptor)

    assert [e.type for e in events] == [EventType.ERROR]  # nosec B101
    assert events[0].error.kind is ErrorKind.RATE_LIMITED  # nosec B101
    assert events[0].error.retriable is True  # nosec B101
    assert "sk-live" not in events[0].error.message  # nosec B101
    assert len(client.calls) == 1  # nosec B101


async def test_cancel_stops_delivery_and_closes_upstream(monkeypatch, registry, timeouts):
    client = _FakeClient([_chunk("a"), _chunk("b"), _chunk("c", finish="stop")])
    adapter = _install(monkeypatch, OpenAIAdapter(api_key="sk-live-1234", timeouts=timeouts), client)
    request, descriptor = _prepare(registry, {"model": "gpt-4.1", "message": "Hi"})
    handle = adapter.stream(request, descriptor)

    first = await handle.__anext__()
    adapter.cancel(handle, "client cancel")

    assert first.content == "a"  # nosec B101
    with pytest.raises(StopAsyncIteration):
        await handle.__anext__()
    await wait_until(lambda: client.streams[0].closed)
    await handle.aclose()
    assert handle.token.reason == "client cancel"  # nosec B101


async def test_xai_streams_reasoning_as_thinking(monkeypatch, registry, timeouts):
    client = _FakeClient(
        [
            _chunk(None, reasoning_content="Let me think. "),
            _chunk("Answer", finish="stop"),
            _usage(11, 7),
        ]
    )
    adapter = _install(monkeypatch, XAIAdapter(api_key="xai-live-1234", timeouts=timeouts), client)
    request, descriptor = _prepare(registry, {"model": "grok-3-mini", "message": "Why?"})

    events = await _collect(adapter, request, descriptor)

    chunks = [(e.delta_kind, e.content) for e in events if e.type is EventType.CHUNK]
    assert chunks == [(DeltaKind.THINKING, "Let me think. "), (DeltaKind.TEXT, "Answer")]  # nosec B101
    params = client.calls[0]
    assert params["reasoning_effort"] == "low"  # nosec B101
    assert params["temperature"] == 0.7  # nosec B101
    assert params["max_tokens"] == 16384  # nosec B101
    assert adapter._base_url == "https://api.x.ai/v1"  # nosec B101


async def test_xai_base_url_from_environment(monkeypatch, timeouts):
    monkeypatch.setenv("XAI_BASE_URL", "https://proxy.internal/v1")

    assert XAIAdapter(api_key="xai-live-1234", timeouts=timeouts)._base_url == "https://proxy.internal/v1"  # nosec B101


async def test_groq_reasoning_format_and_x_groq_usage(monkeypatch, registry, timeouts):
    x_groq_chunk = SimpleNamespace(
        choices=[],
        usage=None,
        x_groq=SimpleNamespace(usage=SimpleNamespace(prompt_tokens=9, completion_tokens=4)),
    )
    client = _FakeClient(
        [
            _chunk(None, reasoning="Plan. "),
            _chunk("Done", finish="stop"),
            x_groq_chunk,
        ]
    )
    adapter = _install(monkeypatch, GroqAdapter(api_key="gsk-live-1234", timeouts=timeouts), client)
    request, descriptor = _prepare(registry, {"model": "qwen/qwen3-32b", "message": "Plan it"})

    events = await _collect(adapter, request, descriptor)

    assert [e.delta_kind for e in events if e.type is EventType.CHUNK] == [DeltaKind.THINKING, DeltaKind.TEXT]  # nosec B101
    usage = next(e for e in events if e.type is EventType.USAGE).usage
    assert (usage.input_tokens, usage.output_tokens) == (9, 4)  # nosec B101
    params = client.calls[0]
    assert params["extra_body"] == {"reasoning_format": "parsed"}  # nosec B101
    assert "reasoning_effort" not in params  # nosec B101
    assert params["max_tokens"] == 8192 and params["temperature"] == 0.6  # nosec B101


async def test_groq_non_reasoning_model_sends_no_reasoning_params(monkeypatch, registry, timeouts):
    client = _FakeClient([_chunk("hi", finish="stop")])
    adapter = _install(monkeypatch, GroqAdapter(api_key="gsk-live-1234", timeouts=timeouts), client)
    request, descriptor = _prepare(registry, {"model": "llama-3.3-70b-versatile", "message": "Hi"})

    await _collect(adapter, request, descriptor)

    assert "extra_body" not in client.calls[0]  # nosec B101
