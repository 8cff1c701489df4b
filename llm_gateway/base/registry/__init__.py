"""Model registry and catalog loading."""

from .catalog_loader import ModelRegistryError, default_catalog_path, load_catalog, parse_catalog
from .model_registry import DEFAULT_MODEL_ID, ModelRegistry

__all__ = [
    "ModelRegistry",
    "ModelRegistryError",
    "DEFAULT_MODEL_ID",
    "default_catalog_path",
    "load_catalog",
    "parse_catalog",
]
