"""
Utility functions for API calls with retry logic and error handling.

Provides the retry executor used by every external service adapter:
- Retry policies (per service class)
- Exponential backoff with a delay cap
- Infinite retry for transient errors, immediate failure for permanent ones
- Observer hook for progress reporting
- Cooperative cancellation and an optional wall-clock budget
"""
import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar, Union, runtime_checkable

from ..constants import (
    OCR_RETRY_ATTEMPT_TIMEOUT,
    OCR_RETRY_BACKOFF_MULTIPLIER,
    OCR_RETRY_INITIAL_DELAY,
    OCR_RETRY_MAX_DELAY,
    POLL_RETRY_ATTEMPT_TIMEOUT,
    POLL_RETRY_BACKOFF_MULTIPLIER,
    POLL_RETRY_INITIAL_DELAY,
    POLL_RETRY_MAX_DELAY,
)
from ..models.errors import ErrorClassification
from .errors import OperationCancelled, classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff configuration for one class of external call.

    Attributes:
        initial_delay: Delay before the second attempt (seconds)
        max_delay: Upper bound for any single delay (seconds)
        backoff_multiplier: Growth factor between consecutive delays (> 1)
        per_attempt_timeout: Time allowed for one attempt (seconds)
    """
    initial_delay: float
    max_delay: float
    backoff_multiplier: float
    per_attempt_timeout: float

    def __post_init__(self):
        if self.initial_delay < 0:
            raise ValueError("initial_delay must not be negative")
        if self.initial_delay > self.max_delay:
            raise ValueError("initial_delay must not exceed max_delay")
        if self.backoff_multiplier <= 1:
            raise ValueError("backoff_multiplier must be greater than 1")
        if self.per_attempt_timeout <= 0:
            raise ValueError("per_attempt_timeout must be positive")


DEFAULT_OCR_RETRY_POLICY = RetryPolicy(
    initial_delay=OCR_RETRY_INITIAL_DELAY,
    max_delay=OCR_RETRY_MAX_DELAY,
    backoff_multiplier=OCR_RETRY_BACKOFF_MULTIPLIER,
    per_attempt_timeout=OCR_RETRY_ATTEMPT_TIMEOUT,
)

DEFAULT_POLL_RETRY_POLICY = RetryPolicy(
    initial_delay=POLL_RETRY_INITIAL_DELAY,
    max_delay=POLL_RETRY_MAX_DELAY,
    backoff_multiplier=POLL_RETRY_BACKOFF_MULTIPLIER,
    per_attempt_timeout=POLL_RETRY_ATTEMPT_TIMEOUT,
)


def calculate_delay(attempt: int, policy: RetryPolicy) -> float:
    """
    Delay to wait after failed attempt number ``attempt`` (1-based).

    ``min(initial_delay * multiplier ** (attempt - 1), max_delay)``, no jitter.
    """
    if attempt < 1:
        raise ValueError("attempt numbers start at 1")
    delay = policy.initial_delay * policy.backoff_multiplier ** (attempt - 1)
    return min(delay, policy.max_delay)


@runtime_checkable
class RetryObserver(Protocol):
    """Receives one notification per scheduled retry."""

    def on_retry(
        self,
        attempt: int,
        error: BaseException,
        classification: ErrorClassification,
        delay: float,
    ) -> Any:
        ...


RetryCallback = Callable[[int, BaseException, float], Any]
OnRetry = Union[RetryObserver, RetryCallback]
SleepFunc = Callable[[float], Awaitable[Any]]


async def _notify(
    on_retry: Optional[OnRetry],
    attempt: int,
    error: BaseException,
    classification: ErrorClassification,
    delay: float,
) -> None:
    if on_retry is None:
        return
    try:
        if isinstance(on_retry, RetryObserver):
            result = on_retry.on_retry(attempt, error, classification, delay)
        else:
            result = on_retry(attempt, error, delay)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning(f"Retry observer failed on attempt {attempt}: {e}")


async def _sleep_unless_cancelled(
    delay: float,
    cancel: Optional[asyncio.Event],
    sleep: SleepFunc,
) -> None:
    if cancel is None:
        await sleep(delay)
        return

    sleeper = asyncio.ensure_future(sleep(delay))
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, waiter):
            if not task.done():
                task.cancel()
        await asyncio.gather(sleeper, waiter, return_exceptions=True)

    if cancel.is_set():
        raise OperationCancelled("Operation cancelled while waiting to retry")


async def with_retry(
    work: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    on_retry: Optional[OnRetry] = None,
    *,
    cancel: Optional[asyncio.Event] = None,
    max_elapsed: Optional[float] = None,
    sleep: SleepFunc = asyncio.sleep,
    label: str = "",
) -> T:
    """
    Run ``work`` until it succeeds or fails with a permanent error.

    Transient failures are retried without limit; the policy caps the delay,
    not the number of attempts. A permanent failure is re-raised unchanged,
    without delay and without notifying ``on_retry``.

    Args:
        work: Zero-argument coroutine function performing one attempt
        policy: Backoff and per-attempt timeout configuration
        on_retry: ``RetryObserver`` or ``callback(attempt, error, delay)``;
            its own failures are logged and ignored
        cancel: Event checked before each attempt and during each backoff
        max_elapsed: Optional wall-clock budget (seconds); when the next
            backoff would exceed it, the last error is re-raised
        sleep: Sleep coroutine, injectable for tests
        label: Name of the call, for log messages

    Returns:
        Whatever ``work`` returns on its first successful attempt

    Raises:
        OperationCancelled: ``cancel`` was set
        Exception: the first permanent error raised by ``work``

    Example:
        >>> result = await with_retry(
        ...     lambda: client.fetch(asin),
        ...     DEFAULT_OCR_RETRY_POLICY,
        ...     on_retry=lambda attempt, error, delay: print(attempt, delay),
        ... )
    """
    name = label or getattr(work, "__name__", "external call")
    started = time.monotonic()
    attempt = 0

    while True:
        attempt += 1
        if cancel is not None and cancel.is_set():
            raise OperationCancelled(f"Operation cancelled before attempt {attempt} of {name}")

        try:
            return await asyncio.wait_for(work(), timeout=policy.per_attempt_timeout)
        except Exception as e:
            classification = classify_error(e)

            if not classification.is_retryable:
                logger.error(
                    f"Permanent error in {name} ({classification.kind.value}): {classification.message}"
                )
                raise

            delay = calculate_delay(attempt, policy)

            if max_elapsed is not None and time.monotonic() - started + delay > max_elapsed:
                logger.error(
                    f"Giving up on {name} after {attempt} attempts: budget of "
                    f"{format_delay(max_elapsed)} exhausted ({e})"
                )
                raise

            logger.warning(
                f"Attempt {attempt} failed for {name} ({classification.kind.value}): {e}. "
                f"Retrying in {format_delay(delay)}..."
            )
            await _notify(on_retry, attempt, e, classification, delay)
            await _sleep_unless_cancelled(delay, cancel, sleep)


def format_delay(seconds: float) -> str:
    """
    Format a delay for display.

    Example:
        >>> format_delay(0.5), format_delay(2), format_delay(90)
        ('500ms', '2.0s', '1.5m')
    """
    if seconds < 1:
        return f"{int(round(seconds * 1000))}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    return f"{seconds / 60:.1f}m"
