from .provider_adapter import ProviderAdapter

__all__ = ["ProviderAdapter"]
