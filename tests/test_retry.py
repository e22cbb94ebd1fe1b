import asyncio

import pytest

from listing_insights.constants import ErrorKind
from listing_insights.utils.api_helpers import (
    DEFAULT_OCR_RETRY_POLICY,
    DEFAULT_POLL_RETRY_POLICY,
    RetryPolicy,
    calculate_delay,
    format_delay,
    with_retry,
)
from listing_insights.utils.errors import HTTPStatusError, OperationCancelled

POLICY = RetryPolicy(initial_delay=1.0, max_delay=30.0, backoff_multiplier=2.0, per_attempt_timeout=5.0)


def _failing(errors, result="ok"):
    """Coroutine function raising each error in turn, then returning ``result``."""
    calls = {"count": 0}
    pending = list(errors)

    async def work():
        calls["count"] += 1
        if pending:
            raise pending.pop(0)
        return result

    work.calls = calls
    return work


def test_calculate_delay_sequence():
    assert [calculate_delay(n, POLICY) for n in range(1, 7)] == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0]
    assert calculate_delay(50, POLICY) == 30.0


@pytest.mark.parametrize("policy", [DEFAULT_OCR_RETRY_POLICY, DEFAULT_POLL_RETRY_POLICY])
def test_delay_is_monotonic_and_capped(policy):
    delays = [calculate_delay(n, policy) for n in range(1, 20)]
    assert delays == sorted(delays)
    assert max(delays) == policy.max_delay
    assert delays[0] == policy.initial_delay


def test_calculate_delay_rejects_attempt_zero():
    with pytest.raises(ValueError):
        calculate_delay(0, POLICY)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(initial_delay=-1, max_delay=10, backoff_multiplier=2, per_attempt_timeout=1),
        dict(initial_delay=20, max_delay=10, backoff_multiplier=2, per_attempt_timeout=1),
        dict(initial_delay=1, max_delay=10, backoff_multiplier=1, per_attempt_timeout=1),
        dict(initial_delay=1, max_delay=10, backoff_multiplier=2, per_attempt_timeout=0),
    ],
)
def test_policy_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


@pytest.mark.asyncio
async def test_rate_limited_twice_then_success(no_sleep):
    work = _failing([HTTPStatusError("slow", 429), HTTPStatusError("slow", 429)], result={"answer": 42})
    seen = []

    def on_retry(attempt, error, delay):
        seen.append((attempt, delay))

    result = await with_retry(work, POLICY, on_retry, sleep=no_sleep)

    assert result == {"answer": 42}
    assert work.calls["count"] == 3
    assert seen == [(1, 1.0), (2, 2.0)]
    assert no_sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_auth_error_is_not_retried(no_sleep):
    work = _failing([HTTPStatusError("denied", 401)])
    seen = []

    with pytest.raises(HTTPStatusError) as exc_info:
        await with_retry(work, POLICY, lambda *args: seen.append(args), sleep=no_sleep)

    assert exc_info.value.status_code == 401
    assert work.calls["count"] == 1
    assert seen == []
    assert no_sleep.delays == []


@pytest.mark.asyncio
async def test_observer_receives_classification(no_sleep):
    class Recorder:
        def __init__(self):
            self.calls = []

        def on_retry(self, attempt, error, classification, delay):
            self.calls.append((attempt, classification.kind, delay))

    recorder = Recorder()
    work = _failing([HTTPStatusError("down", 503)])

    await with_retry(work, POLICY, recorder, sleep=no_sleep)

    assert recorder.calls == [(1, ErrorKind.SERVER_ERROR, 1.0)]


@pytest.mark.asyncio
async def test_async_callback_is_awaited(no_sleep):
    seen = []

    async def on_retry(attempt, error, delay):
        seen.append(attempt)

    await with_retry(_failing([ConnectionResetError()]), POLICY, on_retry, sleep=no_sleep)
    assert seen == [1]


@pytest.mark.asyncio
async def test_failing_observer_does_not_stop_retries(no_sleep):
    def on_retry(attempt, error, delay):
        raise RuntimeError("progress widget crashed")

    work = _failing([HTTPStatusError("down", 500), HTTPStatusError("down", 500)])
    assert await with_retry(work, POLICY, on_retry, sleep=no_sleep) == "ok"
    assert work.calls["count"] == 3


@pytest.mark.asyncio
async def test_attempt_timeout_is_retried(no_sleep):
    policy = RetryPolicy(initial_delay=0.01, max_delay=0.01, backoff_multiplier=2, per_attempt_timeout=0.05)
    calls = {"count": 0}

    async def work():
        calls["count"] += 1
        if calls["count"] == 1:
            await asyncio.sleep(1)
        return "done"

    assert await with_retry(work, policy, sleep=no_sleep) == "done"
    assert calls["count"] == 2


@pytest.mark.asyncio
async def test_cancel_before_first_attempt():
    cancel = asyncio.Event()
    cancel.set()
    work = _failing([])

    with pytest.raises(OperationCancelled):
        await with_retry(work, POLICY, cancel=cancel)
    assert work.calls["count"] == 0


@pytest.mark.asyncio
async def test_cancel_interrupts_backoff_sleep():
    cancel = asyncio.Event()
    work = _failing([HTTPStatusError("down", 500)] * 10)

    def on_retry(attempt, error, delay):
        cancel.set()

    with pytest.raises(OperationCancelled):
        await asyncio.wait_for(with_retry(work, POLICY, on_retry, cancel=cancel), timeout=2)
    assert work.calls["count"] == 1


@pytest.mark.asyncio
async def test_max_elapsed_budget_reraises_last_error(no_sleep):
    work = _failing([HTTPStatusError("down", 500)] * 10)

    with pytest.raises(HTTPStatusError):
        await with_retry(work, POLICY, sleep=no_sleep, max_elapsed=0.5)
    assert work.calls["count"] == 1


@pytest.mark.parametrize("seconds,expected", [(0.5, "500ms"), (2, "2.0s"), (90, "1.5m")])
def test_format_delay(seconds, expected):
    assert format_delay(seconds) == expected
