"""Immutable model registry.

Maps model identifiers to :class:`ModelDescriptor` values. Built once at
startup from the catalog and shared read-only by every connection and
session, so lookups need no locking.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple, Union

from ..errors import ErrorKind, GatewayError
from ..models import ModelDescriptor, ProviderTag
from .catalog_loader import load_catalog, parse_catalog

DEFAULT_MODEL_ID = "gemini-2.0-flash"


class ModelRegistry:
    """Lookup table of model capability descriptors."""

    def __init__(self, descriptors: Iterable[ModelDescriptor], *, default_model: Optional[str] = None) -> None:
        table: Dict[str, ModelDescriptor] = {}
        for descriptor in descriptors:
            table[descriptor.id] = descriptor
        self._models = MappingProxyType(table)
        if default_model is None:
            default_model = DEFAULT_MODEL_ID if DEFAULT_MODEL_ID in table else next(iter(table), None)
        self._default_model = default_model

    @classmethod
    def from_mapping(cls, data: Any) -> "ModelRegistry":
        doc = parse_catalog(data)
        return cls((m.to_descriptor() for m in doc.models), default_model=doc.default_model)

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None) -> "ModelRegistry":
        """Load the registry from a catalog file.

        Raises:
            ModelRegistryError: when the file is missing or malformed.
        """
        doc = load_catalog(path)
        return cls((m.to_descriptor() for m in doc.models), default_model=doc.default_model)

    @property
    def default_model(self) -> Optional[str]:
        return self._default_model

    def resolve(self, model_id: str) -> ModelDescriptor:
        """Return the descriptor for ``model_id``.

        Raises:
            GatewayError: with kind ``UnknownModel`` when the id is not listed.
        """
        descriptor = self._models.get(model_id)
        if descriptor is None:
            raise GatewayError(
                kind=ErrorKind.UNKNOWN_MODEL,
                message=f"unknown model '{model_id}'",
                model=model_id,
            )
        return descriptor

    def list_available(self, provider: Optional[Union[str, ProviderTag]] = None) -> Tuple[ModelDescriptor, ...]:
        """Return descriptors in catalog order, optionally for one provider."""
        if provider is None:
            return tuple(self._models.values())
        try:
            tag = ProviderTag(provider)
        except ValueError as exc:
            raise GatewayError(
                kind=ErrorKind.INVALID_REQUEST,
                message=f"unknown provider '{provider}'",
            ) from exc
        return tuple(d for d in self._models.values() if d.provider is tag)

    def providers(self) -> Tuple[ProviderTag, ...]:
        """Provider tags that have at least one model, in catalog order."""
        seen: Dict[ProviderTag, None] = {}
        for descriptor in self._models.values():
            seen.setdefault(descriptor.provider, None)
        return tuple(seen)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._models.values())


__all__ = ["ModelRegistry", "DEFAULT_MODEL_ID"]
