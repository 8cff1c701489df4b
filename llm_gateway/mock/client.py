"""Deterministic mock adapter for offline runs and tests.

Purpose
-------
Provide a ``ProviderAdapter`` that never touches the network. Output is
scripted with :class:`MockScript` (text deltas, thinking deltas, pacing,
failures, hangs) so the session and connection layers can be exercised
end to end through the real ``BaseStreamingAdapter`` lifecycle.

Timeout and retry semantics
---------------------------
No external calls are issued; retries are disabled by default with
``NO_RETRY``. The start timeout and idle handling still apply, which is what
``hang_after`` is for.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional, Sequence

from ..base.models import ChatRequest, ModelDescriptor
from ..base.resilience.retry import NO_RETRY, RetryConfig
from ..base.streaming import BaseStreamingAdapter, DeltaKind, StreamEvent, TranslationState


@dataclass
class MockScript:
    """What the mock upstream sends for every call.

    Attributes:
        deltas: Text deltas; ``None`` derives a reply from the last user message.
        thinking: Thinking deltas sent before the text.
        delay: Pause before each delta, in seconds.
        open_delay: Pause before the stream is opened (slow upstream connect).
        fail_with: Raised when the stream is opened (start-phase failure).
        fail_after: Raised after all scripted deltas were sent.
        hang_after: Stop sending (without ending) after this many deltas.
        input_tokens: Reported input tokens; ``None`` estimates from the prompt.
    """

    deltas: Optional[Sequence[str]] = None
    thinking: Sequence[str] = ()
    delay: float = 0.0
    open_delay: float = 0.0
    fail_with: Optional[BaseException] = None
    fail_after: Optional[BaseException] = None
    hang_after: Optional[int] = None
    input_tokens: Optional[int] = None


@dataclass
class MockCall:
    """Record of one opened mock stream (for assertions)."""

    params: Dict[str, Any]
    sent: int = 0
    closed: bool = False


def _default_reply(params: Dict[str, Any]) -> List[str]:
    words = f"Mock reply from {params['model']}: {params['prompt'] or '...'}".split(" ")
    return [w if i == len(words) - 1 else f"{w} " for i, w in enumerate(words)]


class MockAdapter(BaseStreamingAdapter):
    """Adapter producing scripted events instead of calling a vendor."""

    def __init__(
        self,
        *,
        provider_name: str = "mock",
        script: Optional[MockScript] = None,
        retry_config: Optional[RetryConfig] = None,
        **kwargs: Any,
    ) -> None:
        self.provider_name = provider_name
        super().__init__(retry_config=retry_config or NO_RETRY, **kwargs)
        self.script = script or MockScript()
        self.calls: List[MockCall] = []

    @property
    def is_configured(self) -> bool:
        return True

    def _build_params(self, request: ChatRequest, descriptor: ModelDescriptor) -> Dict[str, Any]:
        _, rest = request.split_system()
        users = [m.text for m in rest if m.role == "user"]
        return {
            "model": descriptor.id,
            "prompt": users[-1] if users else "",
            "thinking_budget": self._thinking_budget(request, descriptor),
            "max_output_tokens": descriptor.output_tokens_for(request.options.max_output_tokens),
            "json_mode": request.options.json_mode,
        }

    async def _open_stream(self, params: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        call = MockCall(params=params)
        self.calls.append(call)
        if self.script.open_delay:
            await asyncio.sleep(self.script.open_delay)
        if self.script.fail_with is not None:
            raise self.script.fail_with
        return self._produce(call)

    async def _produce(self, call: MockCall) -> AsyncIterator[Dict[str, Any]]:
        script = self.script
        deltas = list(script.deltas) if script.deltas is not None else _default_reply(call.params)
        items = [(DeltaKind.THINKING, t) for t in script.thinking] + [(DeltaKind.TEXT, d) for d in deltas]
        try:
            for kind, text in items:
                if script.hang_after is not None and call.sent >= script.hang_after:
                    await asyncio.Event().wait()
                if script.delay:
                    await asyncio.sleep(script.delay)
                call.sent += 1
                yield {"kind": kind, "text": text}
            if script.fail_after is not None:
                raise script.fail_after
            prompt_tokens = script.input_tokens
            if prompt_tokens is None:
                prompt_tokens = max(1, len(call.params.get("prompt") or "") // 4)
            yield {"usage": {"input": prompt_tokens, "output": sum(len(t.split()) for _, t in items)}, "finish": "stop"}
        finally:
            call.closed = True

    def _translate(self, native: Dict[str, Any], state: TranslationState) -> Iterator[StreamEvent]:
        usage = native.get("usage")
        if usage:
            state.usage.update(input_tokens=usage["input"], output_tokens=usage["output"])
            state.finish_reason = native.get("finish")
            return
        yield StreamEvent.chunk(native["text"], native["kind"])


__all__ = ["MockAdapter", "MockScript", "MockCall"]
