from __future__ import annotations

import importlib

import pytest

from llm_gateway.base.errors import ErrorKind, GatewayError
from llm_gateway.base.resilience.retry import NO_RETRY, RetryConfig, retry

retry_module = importlib.import_module("llm_gateway.base.resilience.retry")


class _Flaky:
    def __init__(self, fail_times: int, kind: ErrorKind):
        self.calls = 0
        self.fail_times = fail_times
        self.kind = kind

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.fail_times:
            raise GatewayError(kind=self.kind, message="boom", provider="x")
        return "ok"


@pytest.fixture()
def sleeps(monkeypatch):
    recorded = []

    async def _fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(retry_module.asyncio, "sleep", _fake_sleep)
    return recorded


async def test_retry_succeeds_after_transient(sleeps):
    attempt_log = []

    def attempt_logger(**kw):
        attempt_log.append(kw)

    cfg = RetryConfig(max_attempts=3, delay_base=2.0, attempt_logger=attempt_logger)
    flaky = _Flaky(fail_times=2, kind=ErrorKind.UPSTREAM_UNAVAILABLE)

    @retry(cfg)
    async def run():
        return await flaky()

    assert await run() == "ok"  # nosec B101 - asserts are appropriate in unit tests
    assert flaky.calls == 3  # nosec B101
    assert sleeps == [1.0, 2.0]  # nosec B101
    assert attempt_log[-1]["error"] is None  # nosec B101
    assert [e["attempt"] for e in attempt_log] == [0, 1, 2]  # nosec B101


async def test_retry_stops_on_non_retryable(sleeps):
    flaky = _Flaky(fail_times=99, kind=ErrorKind.AUTH_FAILURE)

    @retry(RetryConfig(max_attempts=4))
    async def run():
        return await flaky()

    with pytest.raises(GatewayError) as ei:
        await run()
    assert ei.value.kind is ErrorKind.AUTH_FAILURE  # nosec B101
    assert flaky.calls == 1 and sleeps == []  # nosec B101


async def test_retry_gives_up_after_max_attempts(sleeps):
    flaky = _Flaky(fail_times=99, kind=ErrorKind.RATE_LIMITED)

    @retry(RetryConfig(max_attempts=2))
    async def run():
        return await flaky()

    with pytest.raises(GatewayError):
        await run()
    assert flaky.calls == 2 and sleeps == [1.0]  # nosec B101


async def test_no_retry_makes_a_single_attempt(sleeps):
    flaky = _Flaky(fail_times=1, kind=ErrorKind.RATE_LIMITED)

    @retry(NO_RETRY)
    async def run():
        return await flaky()

    with pytest.raises(GatewayError):
        await run()
    assert flaky.calls == 1  # nosec B101
