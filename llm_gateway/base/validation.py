"""Request validation against a resolved model descriptor.

Runs before a session is created: a request that fails here never reaches an
adapter and produces exactly one ``InvalidRequest`` error for its id.

Rules
-----
- temperature must fall inside the descriptor's temperature range
- maxOutputTokens must not exceed the descriptor's output limit
- jsonMode requires a JSON-mode strategy other than ``none``
- image parts require vision support
- thinkingBudget requires a thinking-enabled model; its value is clamped to
  the model's ``{min, max}`` rather than rejected
- the estimated input size (characters / 4) must fit ``max_input_tokens``
"""
from __future__ import annotations

import dataclasses
import math
from typing import Optional, Sequence

from .errors import ErrorKind, GatewayError
from .models import ChatRequest, Message, ModelDescriptor

CHARS_PER_TOKEN = 4


def _reject(descriptor: ModelDescriptor, message: str) -> GatewayError:
    return GatewayError(
        kind=ErrorKind.INVALID_REQUEST,
        message=message,
        provider=descriptor.provider.value,
        model=descriptor.id,
    )


def estimate_input_tokens(messages: Sequence[Message]) -> int:
    """Rough token estimate used by the input size guard."""
    chars = sum(len(m.text) for m in messages)
    return math.ceil(chars / CHARS_PER_TOKEN)


def clamp_thinking_budget(requested: Optional[int], descriptor: ModelDescriptor) -> Optional[int]:
    """Return the thinking budget to transmit, bounded to the model's range.

    ``None`` when the model has no thinking support. When nothing was
    requested the descriptor default is used.
    """
    if not descriptor.thinking_enabled or descriptor.thinking_budget is None:
        return None
    budget = descriptor.thinking_budget
    value = budget.default if requested is None else requested
    return budget.clamp(value)


def validate_request(request: ChatRequest, descriptor: ModelDescriptor) -> ChatRequest:
    """Check ``request`` against ``descriptor`` and return the dispatchable copy.

    Raises:
        GatewayError: kind ``InvalidRequest`` describing the first violation.
    """
    opts = request.options
    if not descriptor.supports_streaming:
        raise _reject(descriptor, f"model '{descriptor.id}' does not support streaming")
    if opts.temperature is not None and not descriptor.temperature_range.contains(opts.temperature):
        rng = descriptor.temperature_range
        raise _reject(
            descriptor,
            f"temperature {opts.temperature} is outside [{rng.min}, {rng.max}] for model '{descriptor.id}'",
        )
    if opts.max_output_tokens is not None and opts.max_output_tokens > descriptor.max_output_tokens:
        raise _reject(
            descriptor,
            f"maxOutputTokens {opts.max_output_tokens} exceeds {descriptor.max_output_tokens} "
            f"for model '{descriptor.id}'",
        )
    if opts.json_mode and not descriptor.supports_json_mode:
        raise _reject(descriptor, f"model '{descriptor.id}' does not support JSON mode")
    if request.wants_vision and not descriptor.supports_vision:
        raise _reject(descriptor, f"model '{descriptor.id}' does not accept image input")
    if opts.thinking_budget is not None and not descriptor.thinking_enabled:
        raise _reject(descriptor, f"model '{descriptor.id}' does not support a thinking budget")
    estimated = estimate_input_tokens(request.messages)
    if estimated > descriptor.max_input_tokens:
        raise _reject(
            descriptor,
            f"input of ~{estimated} tokens exceeds {descriptor.max_input_tokens} for model '{descriptor.id}'",
        )
    return dataclasses.replace(
        request,
        thinking_budget=clamp_thinking_budget(opts.thinking_budget, descriptor),
    )


__all__ = [
    "CHARS_PER_TOKEN",
    "clamp_thinking_budget",
    "estimate_input_tokens",
    "validate_request",
]
