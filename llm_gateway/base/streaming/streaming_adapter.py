"""Base streaming adapter shared by every provider variant.

Purpose
-------
Own the part of the streaming lifecycle that does not depend on the vendor:
lazy start, start-phase timeout and retry, cooperative cancellation checks
between upstream chunks, failure normalization, usage reporting and the
consolidated log line. Vendor modules only translate.

Subclass contract
-----------------
- ``provider_name``: provider tag value (e.g. ``"openai"``).
- ``_build_params(request, descriptor)``: vendor request parameters.
- ``_open_stream(params)``: coroutine returning an async iterable SDK stream.
- ``_translate(native, state)``: iterable of ``chunk`` events for one native
  chunk; updates ``state.usage`` / ``state.finish_reason`` and raises
  ``GatewayError`` for in-band failures (e.g. content filtered).

Failure semantics
-----------------
Every exception (local validation, missing credentials, transport, upstream)
is routed through the :class:`ErrorNormalizer` and surfaces as exactly one
terminal ``error`` event. Nothing vendor-specific escapes the adapter.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, AsyncIterator, Dict, Iterable, Optional

from ...config import get_provider_config
from ...config.env import is_placeholder
from ..cancellation import CancellationToken
from ..errors import ErrorKind, ErrorNormalizer, GatewayError, get_normalizer
from ..log_support import LogContext
from ..logging import get_logger, normalized_log_event
from ..models import ChatRequest, ModelDescriptor
from ..resilience.retry import DEFAULT_RETRY_CONFIG, RetryConfig, retry
from ..timeouts import TimeoutConfig, get_timeout_config, operation_timeout
from ..validation import clamp_thinking_budget
from .events import StreamEvent
from .stream_handle import StreamHandle
from .streaming_metrics import StreamMetrics, finalize_stream
from .translation_state import TranslationState


class BaseStreamingAdapter:
    """Encapsulates provider streaming loop boilerplate."""

    provider_name: str = ""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        timeouts: Optional[TimeoutConfig] = None,
        normalizer: Optional[ErrorNormalizer] = None,
    ) -> None:
        cfg = get_provider_config(self.provider_name, {"api_key": api_key, "base_url": base_url})
        self._api_key: Optional[str] = cfg.get("api_key")
        self._base_url: Optional[str] = cfg.get("base_url")
        self._retry_config = retry_config or DEFAULT_RETRY_CONFIG
        self._timeouts = timeouts or get_timeout_config()
        self._normalizer = normalizer or get_normalizer()
        self._logger = get_logger(f"gateway.providers.{self.provider_name}")
        self._client: Any = None

    # ----- Public contract -----
    @property
    def is_configured(self) -> bool:
        """True when a usable (non-placeholder) API key is available."""
        return bool(self._api_key) and not is_placeholder(self._api_key)

    def stream(
        self,
        request: ChatRequest,
        descriptor: ModelDescriptor,
        *,
        token: Optional[CancellationToken] = None,
    ) -> StreamHandle:
        """Return a lazy handle; no upstream I/O happens until it is iterated."""
        handle = StreamHandle(
            provider=self.provider_name,
            model=descriptor.id,
            token=token or CancellationToken(),
            grace_seconds=self._timeouts.cancel_grace_seconds,
            logger=self._logger,
        )
        handle.bind(self._run(handle, request, descriptor))
        return handle

    def cancel(self, handle: StreamHandle, reason: Optional[str] = None) -> None:
        """Best-effort upstream cancel; local delivery stops immediately."""
        handle.cancel(reason)

    # ----- Subclass hooks -----
    def _build_params(self, request: ChatRequest, descriptor: ModelDescriptor) -> Dict[str, Any]:  # pragma: no cover - abstract
        raise NotImplementedError

    async def _open_stream(self, params: Dict[str, Any]) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError

    def _translate(self, native: Any, state: TranslationState) -> Iterable[StreamEvent]:  # pragma: no cover - abstract
        raise NotImplementedError

    # ----- Shared helpers for subclasses -----
    def _require_api_key(self) -> str:
        if not self.is_configured:
            raise GatewayError(
                kind=ErrorKind.AUTH_FAILURE,
                message=f"provider '{self.provider_name}' is not configured",
                provider=self.provider_name,
            )
        return self._api_key  # type: ignore[return-value]

    @staticmethod
    def _thinking_budget(request: ChatRequest, descriptor: ModelDescriptor) -> Optional[int]:
        """Thinking budget to transmit, always within the descriptor range."""
        requested = request.thinking_budget
        if requested is None:
            requested = request.options.thinking_budget
        return clamp_thinking_budget(requested, descriptor)

    @staticmethod
    def _temperature(request: ChatRequest, descriptor: ModelDescriptor) -> float:
        if request.options.temperature is not None:
            return request.options.temperature
        return descriptor.recommended_temperature

    # ----- Lifecycle -----
    async def _run(
        self,
        handle: StreamHandle,
        request: ChatRequest,
        descriptor: ModelDescriptor,
    ) -> AsyncIterator[StreamEvent]:
        ctx = LogContext(provider=self.provider_name, model=descriptor.id, request_id=request.request_id)
        metrics = StreamMetrics.start()
        state = TranslationState()
        normalized_log_event(self._logger, "stream.start", ctx, phase="start", emitted=None, tokens=None)
        try:
            params = self._build_params(request, descriptor)
            upstream = await self._start_with_retry(params, ctx, descriptor.id)
            handle.attach_upstream(upstream)
            async for native in upstream:
                handle.touch()
                if handle.cancelled:
                    break
                for event in self._translate(native, state):
                    metrics.record(event)
                    yield event
        except asyncio.CancelledError:
            finalize_stream(logger=self._logger, ctx=ctx, metrics=metrics, usage=state.usage, outcome="cancelled")
            raise
        except Exception as exc:
            error = self._normalizer.normalize(self.provider_name, exc)
            finalize_stream(
                logger=self._logger,
                ctx=ctx,
                metrics=metrics,
                usage=state.usage,
                outcome="error",
                error_code=error.kind.value,
            )
            yield StreamEvent.failed(error)
            return
        if handle.cancelled:
            finalize_stream(logger=self._logger, ctx=ctx, metrics=metrics, usage=state.usage, outcome="cancelled")
            return
        finalize_stream(logger=self._logger, ctx=ctx, metrics=metrics, usage=state.usage, outcome="end")
        yield StreamEvent.usage_of(state.usage)
        yield StreamEvent.done(state.finish_reason)

    async def _start_with_retry(self, params: Dict[str, Any], ctx: LogContext, model: str) -> Any:
        """Open the upstream stream under the start timeout and retry policy."""

        def _log_attempt(*, attempt: int, max_attempts: int, delay: float | None, error: GatewayError | None) -> None:
            normalized_log_event(
                self._logger,
                "stream.retry" if (error is not None and delay is not None) else "stream.attempt",
                ctx,
                phase="start",
                attempt=attempt + 1,
                error_code=error.kind.value if error is not None else None,
                emitted=False,
                tokens=None,
                max_attempts=max_attempts,
                delay=delay,
                level=logging.WARNING if error is not None else logging.DEBUG,
            )

        config = dataclasses.replace(self._retry_config, attempt_logger=_log_attempt)

        @retry(config)
        async def _attempt() -> Any:
            try:
                async with operation_timeout(self._timeouts.start_timeout_seconds):
                    return await self._open_stream(params)
            except GatewayError:
                raise
            except Exception as exc:
                raise self._normalizer.to_gateway_error(self.provider_name, exc, model=model) from exc

        return await _attempt()


__all__ = ["BaseStreamingAdapter"]
