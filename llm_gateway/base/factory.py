"""Provider Factory utilities.

Purpose
-------
Map a provider tag to its adapter class and build instances on demand. The
set of variants is closed: one entry per ``ProviderTag``. Adapter modules are
imported lazily with ``importlib`` so a missing vendor SDK only affects the
provider that needs it.

When mocks are enabled (``GATEWAY_USE_MOCKS`` or ``use_mocks=True``), every
tag resolves to the offline ``MockAdapter`` configured for that tag.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Optional, Tuple, Type, Union

from ..config import get_gateway_settings
from .models import ProviderTag


class UnknownProviderError(Exception):
    """Raised when a provider cannot be resolved or initialized.

    Failure modes include:
    - The provider tag is not part of the closed set.
    - The adapter module cannot be imported or the adapter class is missing.
    - The adapter constructor raised an exception during initialization.
    """


class ProviderFactory:
    """Create provider adapters from a provider tag (e.g., ``"openai"``)."""

    _PROVIDERS: Dict[str, Dict[str, str]] = {
        "openai": {"module": "llm_gateway.openai.client", "class": "OpenAIAdapter"},
        "anthropic": {"module": "llm_gateway.anthropic.client", "class": "AnthropicAdapter"},
        "google": {"module": "llm_gateway.gemini.client", "class": "GeminiAdapter"},
        "xai": {"module": "llm_gateway.xai.client", "class": "XAIAdapter"},
        "groq": {"module": "llm_gateway.groq.client", "class": "GroqAdapter"},
    }
    _MOCK = {"module": "llm_gateway.mock.client", "class": "MockAdapter"}

    @classmethod
    def create(
        cls,
        provider: Union[str, ProviderTag],
        *,
        use_mocks: Optional[bool] = None,
        **kwargs: Any,
    ) -> Any:
        """Create the adapter for ``provider``.

        Raises
        ------
        UnknownProviderError
            If the tag is unknown, the adapter module fails to import, the
            adapter class is missing, or the adapter constructor raises.
        """
        name = provider.value if isinstance(provider, ProviderTag) else (provider or "").lower().strip()
        spec = cls._PROVIDERS.get(name)
        if not spec:
            raise UnknownProviderError(f"Unknown provider '{provider}'")
        if use_mocks is None:
            use_mocks = get_gateway_settings().use_mocks
        if use_mocks:
            spec = cls._MOCK
            kwargs.setdefault("provider_name", name)

        module_path, class_name = spec["module"], spec["class"]
        try:
            mod = import_module(module_path)
        except ImportError as exc:
            raise UnknownProviderError(
                f"Failed to import module '{module_path}' for provider '{name}': {exc}"
            ) from exc

        try:
            klass: Type = getattr(mod, class_name)
        except AttributeError as exc:
            raise UnknownProviderError(
                f"Adapter class '{class_name}' not found in '{module_path}' for provider '{name}'"
            ) from exc

        try:
            return klass(**kwargs)
        except TypeError as exc:
            raise UnknownProviderError(f"Invalid arguments for '{name}' adapter constructor: {exc}") from exc

    @classmethod
    def supported(cls) -> Tuple[str, ...]:
        """Supported provider tags in deterministic order."""
        return tuple(cls._PROVIDERS.keys())


__all__ = ["ProviderFactory", "UnknownProviderError"]
