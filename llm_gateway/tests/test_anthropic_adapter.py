"""Anthropic translation helpers and adapter lifecycle."""

from __future__ import annotations

import dataclasses
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from llm_gateway.anthropic import AnthropicAdapter
from llm_gateway.anthropic.helpers import build_params, translate_event
from llm_gateway.base.errors import ErrorKind, GatewayError
from llm_gateway.base.models import JSON_MODE_INSTRUCTION, JsonModeStrategy
from llm_gateway.base.streaming import DeltaKind, EventType, TranslationState
from llm_gateway.config import GatewaySettings
from llm_gateway.service.gateway import Gateway

from .helpers import FakeUpstream


def _prepare(registry, payload):
    return Gateway(registry, settings=GatewaySettings()).prepare(payload, request_id="an1")


def _params(registry, payload) -> Dict[str, Any]:
    request, descriptor = _prepare(registry, payload)
    return build_params(request, descriptor, request.thinking_budget, request.options.temperature or descriptor.recommended_temperature)


def _message_start(input_tokens: int):
    return SimpleNamespace(type="message_start", message=SimpleNamespace(usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=1)))


def _delta(kind: str, **fields):
    return SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type=kind, **fields))


def _message_delta(stop_reason: str, output_tokens: int):
    return SimpleNamespace(
        type="message_delta",
        delta=SimpleNamespace(stop_reason=stop_reason),
        usage=SimpleNamespace(output_tokens=output_tokens),
    )


def test_thinking_model_sends_budget_and_omits_temperature(registry):
    params = _params(
        registry,
        {"model": "claude-sonnet-4-20250514", "message": "Prove it", "options": {"thinkingBudget": 999999, "temperature": 0.2}},
    )

    assert params["thinking"] == {"type": "enabled", "budget_tokens": 32000}  # nosec B101
    assert params["max_tokens"] == 32000 + 4096  # nosec B101
    assert "temperature" not in params  # nosec B101
    assert params["stream"] is True  # nosec B101


def test_non_thinking_model_sends_temperature(registry):
    params = _params(registry, {"model": "claude-3-5-haiku-20241022", "message": "Hi", "options": {"temperature": 0.3}})

    assert "thinking" not in params  # nosec B101
    assert params["temperature"] == 0.3 and params["max_tokens"] == 4096  # nosec B101
    assert params["messages"] == [{"role": "user", "content": "Hi"}]  # nosec B101


def test_system_prompt_is_lifted_and_json_instruction_appended(registry):
    params = _params(
        registry,
        {
            "model": "claude-3-5-haiku-20241022",
            "systemPrompt": "You extract fields.",
            "message": "Name: Ada",
            "options": {"jsonMode": True},
        },
    )

    assert params["system"] == f"You extract fields.\n\n{JSON_MODE_INSTRUCTION}"  # nosec B101
    assert all(m["role"] != "system" for m in params["messages"])  # nosec B101


@pytest.mark.parametrize("strategy", [JsonModeStrategy.RESPONSE_FORMAT, JsonModeStrategy.RESPONSE_MIME_TYPE])
def test_json_mode_falls_back_to_instruction_for_other_strategies(registry, strategy):
    request, descriptor = _prepare(
        registry,
        {"model": "claude-3-5-haiku-20241022", "message": "Name: Ada", "options": {"jsonMode": True}},
    )

    params = build_params(request, dataclasses.replace(descriptor, json_mode=strategy), None, 0.2)

    assert params["system"] == JSON_MODE_INSTRUCTION  # nosec B101


def test_image_parts_become_content_blocks(registry):
    params = _params(
        registry,
        {
            "model": "claude-sonnet-4-20250514",
            "message": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "Compare"},
                        {"type": "image", "url": "data:image/png;base64,AAAA"},
                        {"type": "image", "url": "https://x/dog.jpg"},
                    ],
                }
            ],
        },
    )

    blocks = params["messages"][0]["content"]
    assert blocks[0] == {"type": "text", "text": "Compare"}  # nosec B101
    assert blocks[1]["source"] == {"type": "base64", "media_type": "image/png", "data": "AAAA"}  # nosec B101
    assert blocks[2]["source"] == {"type": "url", "url": "https://x/dog.jpg"}  # nosec B101


def test_translate_event_maps_deltas_and_usage():
    state = TranslationState()
    events = []
    for raw in (
        _message_start(12),
        _delta("thinking_delta", thinking="Hmm. "),
        _delta("text_delta", text="Yes."),
        _delta("signature_delta", signature="sig"),
        _message_delta("end_turn", 9),
    ):
        events.extend(translate_event(raw, state))

    assert [(e.delta_kind, e.content) for e in events] == [(DeltaKind.THINKING, "Hmm. "), (DeltaKind.TEXT, "Yes.")]  # nosec B101
    assert (state.usage.input_tokens, state.usage.output_tokens) == (12, 9)  # nosec B101
    assert state.finish_reason == "end_turn"  # nosec B101


def test_refusal_stop_reason_is_content_policy():
    with pytest.raises(GatewayError) as ei:
        list(translate_event(_message_delta("refusal", 3), TranslationState()))
    assert ei.value.kind is ErrorKind.CONTENT_POLICY  # nosec B101


class _FakeAnthropic:
    def __init__(self, events: List[Any]) -> None:
        self.calls: List[Dict[str, Any]] = []
        self._events = events
        self.messages = SimpleNamespace(create=self._create)

    async def _create(self, **params: Any) -> FakeUpstream:
        self.calls.append(params)
        return FakeUpstream(self._events)


async def test_adapter_streams_thinking_then_text(monkeypatch, registry, timeouts):
    client = _FakeAnthropic(
        [_message_start(20), _delta("thinking_delta", thinking="Plan. "), _delta("text_delta", text="Go."), _message_delta("end_turn", 6)]
    )
    adapter = AnthropicAdapter(api_key="sk-ant-live-1234", timeouts=timeouts)
    monkeypatch.setattr(adapter, "_make_client", lambda: client)
    request, descriptor = _prepare(registry, {"model": "claude-sonnet-4-20250514", "message": "Go"})

    events = [e async for e in adapter.stream(request, descriptor)]

    assert [e.type for e in events] == [EventType.CHUNK, EventType.CHUNK, EventType.USAGE, EventType.DONE]  # nosec B101
    assert events[0].delta_kind is DeltaKind.THINKING  # nosec B101
    assert events[2].usage.to_dict() == {"inputTokens": 20, "outputTokens": 6}  # nosec B101
    assert client.calls[0]["thinking"]["budget_tokens"] == 4096  # nosec B101


async def test_adapter_mid_stream_disconnect_is_upstream_unavailable(monkeypatch, registry, timeouts):
    adapter = AnthropicAdapter(api_key="sk-ant-live-1234", timeouts=timeouts)
    opened: List[Dict[str, Any]] = []

    async def _open_stream(params):
        opened.append(params)
        return FakeUpstream([_delta("text_delta", text="par")], fail_after=ConnectionResetError("peer reset"))

    monkeypatch.setattr(adapter, "_open_stream", _open_stream)
    request, descriptor = _prepare(registry, {"model": "claude-3-5-haiku-20241022", "message": "Go"})

    events = [e async for e in adapter.stream(request, descriptor)]

    assert [e.type for e in events] == [EventType.CHUNK, EventType.ERROR]  # nosec B101
    assert events[-1].error.kind is ErrorKind.UPSTREAM_UNAVAILABLE  # nosec B101
    assert len(opened) == 1  # nosec B101
