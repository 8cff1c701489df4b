"""Unified configuration layer for provider credentials and endpoints.

Sources are merged in a predictable order (later wins):

1. Built-in defaults (``DEFAULTS``)
2. Optional external config file (JSON or YAML) pointed to by
   ``GATEWAY_CONFIG_FILE``
3. Environment variables (``<PROVIDER>_API_KEY``, ``<PROVIDER>_BASE_URL``;
   aliases from ``env.ENV_ALIASES`` are honoured for the key)
4. In-code overrides passed to ``get_provider_config``

A ``.env`` file in the working directory (or ``DOTENV_FILE``) is read once
and only fills variables that are unset or hold placeholders.

External config file example::

    xai:
      base_url: https://api.x.ai/v1
    groq:
      api_key: gsk_...

Public API
----------
* get_provider_config(provider: str, overrides: dict | None = None) -> dict
* provider_configured(provider: str) -> bool
* GatewaySettings / get_gateway_settings
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .defaults import GROQ_DEFAULT_BASE_URL, XAI_DEFAULT_BASE_URL
from .env import is_placeholder, resolve_provider_key
from .settings import GatewaySettings, get_gateway_settings

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "openai": {},
    "anthropic": {},
    "google": {},
    "xai": {"base_url": XAI_DEFAULT_BASE_URL},
    "groq": {"base_url": GROQ_DEFAULT_BASE_URL},
}

_FILE_CACHE: Optional[Dict[str, Any]] = None
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Parse ``KEY=VALUE`` lines from the dotenv file into ``os.environ``.

    Comments and blank lines are skipped. Existing variables are replaced
    only when their current value is a placeholder.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for raw in fh:
                line = raw.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE
    if _FILE_CACHE is not None:
        return _FILE_CACHE
    path = os.getenv("GATEWAY_CONFIG_FILE")
    if not path or not Path(path).exists():
        _FILE_CACHE = {}
        return _FILE_CACHE
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError:
            data = {}
    _FILE_CACHE = data if isinstance(data, dict) else {}
    return _FILE_CACHE


def _env_overrides(provider: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    key, _ = resolve_provider_key(provider)
    if key is not None:
        out["api_key"] = key
    if base_url := os.getenv(f"{provider.upper()}_BASE_URL"):
        out["base_url"] = base_url
    return out


def reset_config_cache() -> None:
    """Forget the cached external config file (tests flip env vars)."""
    global _FILE_CACHE
    _FILE_CACHE = None


def get_provider_config(provider: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return merged configuration for a provider.

    Merge order (later wins): defaults -> external config -> env vars -> overrides
    """
    _load_dotenv_once()
    name = (provider or "").lower().strip()
    cfg: Dict[str, Any] = dict(DEFAULTS.get(name, {}))

    file_cfg = _load_external_config().get(name)
    if isinstance(file_cfg, dict):
        cfg |= file_cfg

    cfg |= _env_overrides(name)

    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}
    return cfg


def provider_configured(provider: str) -> bool:
    """True when the provider has a non-placeholder API key."""
    key = get_provider_config(provider).get("api_key")
    return bool(key) and not is_placeholder(key)


__all__ = [
    "DEFAULTS",
    "GatewaySettings",
    "get_gateway_settings",
    "get_provider_config",
    "provider_configured",
    "reset_config_cache",
]
