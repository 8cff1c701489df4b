"""Pytest configuration for the gateway test suite.

Every test runs with provider credentials and config-file variables cleared
so results never depend on the developer's shell. Connection and session
tests use the scripted ``MockAdapter`` for every provider tag; transport
doubles live in ``helpers``.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional

import pytest

from llm_gateway import config as gateway_config
from llm_gateway.base.models import ProviderTag
from llm_gateway.base.registry import ModelRegistry
from llm_gateway.base.timeouts import TimeoutConfig
from llm_gateway.config import GatewaySettings
from llm_gateway.config.env import ENV_ALIASES, ENV_MAP
from llm_gateway.mock import MockAdapter, MockScript
from llm_gateway.service.gateway import Gateway

_CLEARED_VARS = (
    "GATEWAY_CONFIG_FILE",
    "GATEWAY_CATALOG_FILE",
    "GATEWAY_USE_MOCKS",
    "XAI_BASE_URL",
    "GROQ_BASE_URL",
    "OPENAI_BASE_URL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear credentials and config-file pointers; skip ``.env`` loading."""
    names = set(ENV_MAP.values()) | {alias for aliases in ENV_ALIASES.values() for alias in aliases}
    for name in names | set(_CLEARED_VARS):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(gateway_config, "_DOTENV_LOADED", True)
    gateway_config.reset_config_cache()
    yield
    gateway_config.reset_config_cache()


@pytest.fixture()
def registry() -> ModelRegistry:
    """Registry built from the packaged catalog."""
    return ModelRegistry.from_file()


@pytest.fixture()
def timeouts() -> TimeoutConfig:
    return TimeoutConfig(
        start_timeout_seconds=2.0,
        idle_timeout_seconds=2.0,
        cancel_grace_seconds=0.5,
        http_timeout_seconds=5.0,
    )


@pytest.fixture()
def make_gateway(registry: ModelRegistry, timeouts: TimeoutConfig) -> Callable[..., Gateway]:
    """Factory for a ``Gateway`` whose adapters are all scripted mocks.

    ``gateway.mock_adapters`` maps provider tag to its ``MockAdapter`` so
    tests can inspect recorded calls.
    """

    def _make(
        script: Optional[MockScript] = None,
        *,
        settings: Optional[GatewaySettings] = None,
        timeouts_override: Optional[TimeoutConfig] = None,
    ) -> Gateway:
        effective = timeouts_override or timeouts
        adapters = {
            tag.value: MockAdapter(provider_name=tag.value, script=script or MockScript(), timeouts=effective)
            for tag in ProviderTag
        }
        gateway = Gateway(
            registry,
            settings=settings or GatewaySettings(disconnect_poll_seconds=0.05),
            timeouts=effective,
            adapters=adapters,
        )
        gateway.mock_adapters = adapters  # type: ignore[attr-defined]
        return gateway

    return _make
