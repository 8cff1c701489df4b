"""Pydantic DTOs for inbound wire messages and the model catalog."""

from .chat import (
    CancelDTO,
    ChatMessageDTO,
    ChatOptionsDTO,
    ChatRequestDTO,
    ContentPartDTO,
    summarize_validation_error,
)
from .catalog import CatalogDocumentDTO, CatalogEntryDTO

__all__ = [
    "CancelDTO",
    "ChatMessageDTO",
    "ChatOptionsDTO",
    "ChatRequestDTO",
    "ContentPartDTO",
    "summarize_validation_error",
    "CatalogDocumentDTO",
    "CatalogEntryDTO",
]
