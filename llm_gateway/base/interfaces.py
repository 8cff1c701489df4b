"""
Provider-agnostic interfaces for the gateway.

Re-exports the Protocols split into single-class modules under
``llm_gateway.base.interfaces_parts`` to keep imports stable.
"""

from __future__ import annotations

from .interfaces_parts import ProviderAdapter

__all__ = ["ProviderAdapter"]
