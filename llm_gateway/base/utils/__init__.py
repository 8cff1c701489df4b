"""Small provider-agnostic helpers."""

from .messages import parse_data_url, system_with_instruction

__all__ = ["parse_data_url", "system_with_instruction"]
