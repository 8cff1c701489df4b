"""Model catalog loader.

Reads the YAML catalog (``llm_gateway/catalog/models.yaml`` unless a path is
given or ``GATEWAY_CATALOG_FILE`` is set) and validates it through
:class:`CatalogDocumentDTO`.

YAML Schema
-----------

.. code-block:: yaml

    default_model: gemini-2.0-flash
    models:
      - id: gpt-4.1
        provider: openai
        max_input_tokens: 1047576
        max_output_tokens: 32768
        json_mode: response_format
        supports_vision: true
      - id: claude-sonnet-4-20250514
        provider: anthropic
        max_input_tokens: 200000
        max_output_tokens: 64000
        thinking_enabled: true
        thinking_budget: {min: 1024, max: 32000, default: 4096}
        json_mode: system_prompt

Only ``id``, ``provider``, ``max_input_tokens`` and ``max_output_tokens`` are
required per entry. Any structural problem raises
:class:`ModelRegistryError`; there is no partial load.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..dto.catalog import CatalogDocumentDTO


class ModelRegistryError(Exception):
    """Raised when the model catalog cannot be read or is malformed.

    Treated as fatal at startup: the service refuses to run with a partial
    or unreadable catalog.
    """


def default_catalog_path() -> Path:
    """Return the packaged catalog path (``llm_gateway/catalog/models.yaml``)."""
    # parents[0] registry/, parents[1] base/, parents[2] llm_gateway/
    return Path(__file__).resolve().parents[2] / "catalog" / "models.yaml"


def resolve_catalog_path(path: Optional[Union[str, Path]] = None) -> Path:
    if path:
        return Path(path)
    env_path = os.getenv("GATEWAY_CATALOG_FILE")
    if env_path:
        return Path(env_path)
    return default_catalog_path()


def parse_catalog(data: Any, *, source: str = "<memory>") -> CatalogDocumentDTO:
    """Validate an already-parsed catalog mapping."""
    if not isinstance(data, dict):
        raise ModelRegistryError(f"catalog {source} must be a mapping with a 'models' list")
    try:
        return CatalogDocumentDTO.model_validate(data)
    except ValidationError as exc:
        raise ModelRegistryError(f"catalog {source} is malformed: {exc}") from exc


def load_catalog(path: Optional[Union[str, Path]] = None) -> CatalogDocumentDTO:
    """Read and validate the catalog file."""
    catalog_path = resolve_catalog_path(path)
    try:
        text = catalog_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ModelRegistryError(f"catalog {catalog_path} cannot be read: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ModelRegistryError(f"catalog {catalog_path} is not valid YAML: {exc}") from exc
    return parse_catalog(data, source=str(catalog_path))


__all__ = [
    "ModelRegistryError",
    "default_catalog_path",
    "resolve_catalog_path",
    "parse_catalog",
    "load_catalog",
]
