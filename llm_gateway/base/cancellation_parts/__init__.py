"""Cancellation parts: token and its state holder."""

from .cancellation_token import CancellationToken

__all__ = ["CancellationToken"]
