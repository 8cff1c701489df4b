"""ModelRegistry and catalog loading tests.

Covers the packaged catalog, lookups and provider filtering, and the
startup failures a malformed catalog must produce.
"""

from __future__ import annotations

import pytest
import yaml

from llm_gateway.base.errors import ErrorKind, GatewayError
from llm_gateway.base.models import JsonModeStrategy, ProviderTag
from llm_gateway.base.registry import ModelRegistry, ModelRegistryError

_MINIMAL = {
    "models": [
        {"id": "m-1", "provider": "openai", "max_input_tokens": 1000, "max_output_tokens": 100},
    ]
}


def _write(tmp_path, data) -> str:
    path = tmp_path / "catalog.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


def test_packaged_catalog_covers_every_provider(registry):
    assert set(registry.providers()) == set(ProviderTag)  # nosec B101
    assert registry.default_model == "gemini-2.0-flash"  # nosec B101
    assert "gpt-4.1" in registry and len(registry) >= 10  # nosec B101


def test_resolve_returns_descriptor_capabilities(registry):
    claude = registry.resolve("claude-sonnet-4-20250514")

    assert claude.provider is ProviderTag.ANTHROPIC  # nosec B101
    assert claude.thinking_enabled and claude.thinking_budget.max == 32000  # nosec B101
    assert claude.json_mode is JsonModeStrategy.SYSTEM_PROMPT  # nosec B101
    assert claude.temperature_range.max == 1.0  # nosec B101
    assert registry.resolve("gpt-4.1").temperature_range.max == 2.0  # nosec B101


def test_resolve_unknown_model_raises_unknown_model(registry):
    with pytest.raises(GatewayError) as ei:
        registry.resolve("not-a-model")
    assert ei.value.kind is ErrorKind.UNKNOWN_MODEL  # nosec B101
    assert ei.value.normalized().retriable is False  # nosec B101


def test_list_available_filters_by_provider(registry):
    groq = registry.list_available("groq")

    assert {d.id for d in groq} == {"llama-3.3-70b-versatile", "qwen/qwen3-32b"}  # nosec B101
    assert registry.list_available(ProviderTag.GROQ) == groq  # nosec B101
    assert len(registry.list_available()) == len(registry)  # nosec B101


def test_list_available_rejects_unknown_provider(registry):
    with pytest.raises(GatewayError) as ei:
        registry.list_available("acme")
    assert ei.value.kind is ErrorKind.INVALID_REQUEST  # nosec B101


def test_descriptor_to_dict_is_camel_case(registry):
    data = registry.resolve("o4-mini").to_dict()

    assert data["provider"] == "openai"  # nosec B101
    assert data["thinkingBudget"] == {"min": 1024, "max": 32768, "default": 8192}  # nosec B101
    assert data["jsonMode"] == "response_format"  # nosec B101


def test_from_mapping_defaults_to_first_model_without_default():
    reg = ModelRegistry.from_mapping(_MINIMAL)

    assert reg.default_model == "m-1"  # nosec B101
    assert reg.resolve("m-1").temperature_range.max == 2.0  # nosec B101


def test_catalog_path_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("GATEWAY_CATALOG_FILE", _write(tmp_path, _MINIMAL))

    assert [d.id for d in ModelRegistry.from_file()] == ["m-1"]  # nosec B101


@pytest.mark.parametrize(
    "document",
    [
        ["not", "a", "mapping"],
        {"models": []},
        {"models": [{"id": "m", "provider": "acme", "max_input_tokens": 1, "max_output_tokens": 1}]},
        {"models": [{"id": "m", "provider": "openai", "max_input_tokens": 1, "max_output_tokens": 1, "thinking_enabled": True}]},
        {"models": _MINIMAL["models"] * 2},
        {"default_model": "missing", "models": _MINIMAL["models"]},
        {
            "models": [
                {
                    "id": "m",
                    "provider": "anthropic",
                    "max_input_tokens": 1,
                    "max_output_tokens": 10,
                    "thinking_enabled": True,
                    "thinking_budget": {"min": 100, "max": 50, "default": 75},
                }
            ]
        },
    ],
    ids=["not-mapping", "no-models", "bad-provider", "thinking-without-budget", "duplicate-id", "bad-default", "inverted-budget"],
)
def test_malformed_catalog_is_fatal(tmp_path, document):
    with pytest.raises(ModelRegistryError):
        ModelRegistry.from_file(_write(tmp_path, document))


def test_missing_or_unparsable_catalog_is_fatal(tmp_path):
    with pytest.raises(ModelRegistryError):
        ModelRegistry.from_file(tmp_path / "absent.yaml")

    broken = tmp_path / "broken.yaml"
    broken.write_text("models: [unclosed", encoding="utf-8")
    with pytest.raises(ModelRegistryError):
        ModelRegistry.from_file(broken)
