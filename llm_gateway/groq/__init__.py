from .client import GroqAdapter

__all__ = ["GroqAdapter"]
