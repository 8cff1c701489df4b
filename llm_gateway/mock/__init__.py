from .client import MockAdapter, MockCall, MockScript

__all__ = ["MockAdapter", "MockCall", "MockScript"]
