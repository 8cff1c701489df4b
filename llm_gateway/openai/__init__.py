from .client import OpenAIAdapter

__all__ = ["OpenAIAdapter"]
