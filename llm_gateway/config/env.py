"""llm_gateway.config.env
======================

Centralized environment variable mapping and helpers for provider credentials.

- ``ENV_MAP`` maps each provider tag to its canonical API key variable.
- ``ENV_ALIASES`` lists accepted alternatives (canonical first).
- ``is_placeholder`` recognizes template values that must not count as a
  configured credential.

Helpers never raise on unknown providers or unset variables; callers decide
how to proceed.
"""

from __future__ import annotations

import os
from typing import Dict, Iterable, Optional, Tuple

ENV_MAP: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_AI_API_KEY",
    "xai": "XAI_API_KEY",
    "groq": "GROQ_API_KEY",
}

ENV_ALIASES: Dict[str, Tuple[str, ...]] = {
    "google": ("GOOGLE_AI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"),
}

_PLACEHOLDER_MARKERS = ("your_", "placeholder", "changeme", "example")


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the value looks like a template rather than a real key.

    Heuristics (case-insensitive): contains ``your_``, ``placeholder``,
    ``changeme`` or ``example``; equals ``sk-xxx``; or starts with ``test_``.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return any(marker in v for marker in _PLACEHOLDER_MARKERS) or v == "sk-xxx" or v.startswith("test_")


def get_env_var_candidates(provider: str) -> Iterable[str]:
    """Yield acceptable environment variable names, canonical first."""
    p = (provider or "").lower()
    canonical = ENV_MAP.get(p)
    if canonical:
        yield canonical
    for alias in ENV_ALIASES.get(p, ()):
        if alias != canonical:
            yield alias


def resolve_provider_key(provider: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(value, env_var_used)`` for the first non-empty candidate.

    ``(None, None)`` when nothing is set.
    """
    for name in get_env_var_candidates(provider):
        if val := os.environ.get(name):
            return val, name
    return None, None


__all__ = [
    "ENV_MAP",
    "ENV_ALIASES",
    "is_placeholder",
    "get_env_var_candidates",
    "resolve_provider_key",
]
