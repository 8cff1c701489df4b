"""OpenAI-compatible adapter base and helpers."""

from .base import CONTENT_FILTER_FINISH, BaseOpenAIStyleAdapter

__all__ = ["BaseOpenAIStyleAdapter", "CONTENT_FILTER_FINISH"]
