"""Per-call streaming metrics and the consolidated end-of-stream log line."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from ..log_support import LogContext
from ..logging import normalized_log_event
from ..models import UsageStats
from .events import DeltaKind, EventType, StreamEvent


@dataclass
class StreamMetrics:
    """Collected metrics for a single upstream call.

    ``emitted`` counts text chunks, ``thinking_emitted`` thinking chunks.
    Durations are milliseconds measured from the start of the call.
    """

    started_at: float = 0.0
    emitted: int = 0
    thinking_emitted: int = 0
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None

    @classmethod
    def start(cls) -> "StreamMetrics":
        return cls(started_at=time.perf_counter())

    def record(self, event: StreamEvent) -> None:
        if event.type is not EventType.CHUNK:
            return
        if self.time_to_first_token_ms is None:
            self.time_to_first_token_ms = (time.perf_counter() - self.started_at) * 1000.0
        if event.delta_kind is DeltaKind.THINKING:
            self.thinking_emitted += 1
        else:
            self.emitted += 1

    def stop(self) -> None:
        self.total_duration_ms = (time.perf_counter() - self.started_at) * 1000.0


def finalize_stream(
    *,
    logger: logging.Logger,
    ctx: LogContext,
    metrics: StreamMetrics,
    usage: UsageStats,
    outcome: str,
    error_code: Optional[str] = None,
) -> None:
    """Emit the single ``stream.<outcome>`` log line for an upstream call."""
    metrics.stop()
    normalized_log_event(
        logger,
        f"stream.{outcome}",
        ctx,
        phase="finalize",
        emitted=(metrics.emitted + metrics.thinking_emitted) > 0,
        tokens=usage,
        error_code=error_code,
        level=logging.WARNING if outcome == "error" else logging.INFO,
        emitted_count=metrics.emitted,
        thinking_count=metrics.thinking_emitted,
        time_to_first_token_ms=metrics.time_to_first_token_ms,
        total_duration_ms=metrics.total_duration_ms,
    )


__all__ = ["StreamMetrics", "finalize_stream"]
