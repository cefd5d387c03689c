"""Composable retry policy for outbound calls."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryPredicate = Callable[[BaseException], bool]
Sleep = Callable[[float], Awaitable[None]]


def is_retryable_status(status: int | None) -> bool:
    """Check whether a failed attempt with this HTTP status may be retried.

    Args:
        status: HTTP status code, or None for transport-level failures.

    Returns:
        True for transport failures, 408, 429 and any 5xx status.
    """
    if status is None:
        return True
    return status in (408, 429) or 500 <= status <= 599


def _retryable_attribute(exc: BaseException) -> bool:
    return bool(getattr(exc, "retryable", False))


class RetryPolicy(BaseModel):
    """Policy for retrying a failed operation.

    The predicate decides whether an error is worth another attempt; the delay
    before attempt ``n + 1`` is ``min(max_delay_ms, base_delay_ms * 2**n)``
    plus optional jitter.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_retries: int = Field(default=2, ge=0, description="Retries after the first attempt")
    base_delay_ms: int = Field(default=500, ge=0, description="Base backoff delay")
    max_delay_ms: int = Field(default=8000, ge=0, description="Backoff ceiling")
    jitter_ms: int = Field(default=0, ge=0, description="Upper bound of random jitter")
    retry_on: RetryPredicate = Field(default=_retryable_attribute, exclude=True)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        """Decide whether to retry after a failed attempt.

        Args:
            exc: Error raised by the attempt.
            attempt: Zero-based index of the attempt that failed.
        """
        return attempt < self.max_retries and self.retry_on(exc)

    def delay_ms(self, attempt: int, rng: random.Random | None = None) -> int:
        """Backoff before the attempt following ``attempt``."""
        delay = min(self.max_delay_ms, self.base_delay_ms * (2**attempt))
        if self.jitter_ms:
            delay += (rng or random).randint(0, self.jitter_ms)
        return delay


async def call_with_retry(
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    *,
    name: str = "operation",
    sleep: Sleep = asyncio.sleep,
    on_retry: Callable[[BaseException, int, int], None] | None = None,
) -> T:
    """Run an async operation under a retry policy.

    Args:
        operation: Coroutine factory receiving the zero-based attempt index.
        policy: Retry policy to apply.
        name: Label used in log records.
        sleep: Awaitable sleep, replaceable in tests.
        on_retry: Optional hook called with (error, attempt, delay_ms) before
            each backoff sleep.

    Returns:
        The operation's result from the first successful attempt.

    Raises:
        The last error once the policy stops retrying.
    """
    attempt = 0
    while True:
        try:
            return await operation(attempt)
        except Exception as exc:
            if not policy.should_retry(exc, attempt):
                raise
            delay = policy.delay_ms(attempt)
            if on_retry is not None:
                on_retry(exc, attempt, delay)
            else:
                logger.warning(
                    f"{name} attempt {attempt + 1} failed, retrying in {delay}ms",
                    extra={"attempt": attempt + 1, "delay_ms": delay},
                )
            await sleep(delay / 1000.0)
            attempt += 1
