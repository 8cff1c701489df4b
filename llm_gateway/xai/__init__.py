from .client import XAIAdapter

__all__ = ["XAIAdapter"]
