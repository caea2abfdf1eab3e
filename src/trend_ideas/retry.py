"""Bounded per-item retry with a consecutive-failure circuit breaker."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Limits for a loop over items that may fail.

    Attributes:
        max_attempts: Attempts per item before the item counts as failed.
        max_consecutive_failures: Failed items in a row that trip the breaker,
            or None for no breaker.
        delay_seconds: Wait between attempts on the same item.
    """

    max_attempts: int = 3
    max_consecutive_failures: int | None = 10
    delay_seconds: float = 1.0


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of running one item under a retry policy."""

    value: T | None
    error: Exception | None
    attempts: int

    @property
    def ok(self) -> bool:
        return self.error is None


class BoundedRetry(Generic[T]):
    """Runs items under a :class:`RetryPolicy`, tracking consecutive failures.

    One instance spans a whole loop; check :attr:`tripped` before starting
    each item.

    Args:
        policy: Retry and breaker limits.
        sleep: Awaitable sleep used between attempts.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._policy = policy
        self._sleep = sleep
        self._consecutive_failures = 0

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def tripped(self) -> bool:
        limit = self._policy.max_consecutive_failures
        return limit is not None and self._consecutive_failures >= limit

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        on_retry: Callable[[int, Exception], Awaitable[None]] | None = None,
    ) -> Outcome[T]:
        """Run one item, retrying failed attempts up to the policy limit.

        Args:
            operation: Coroutine factory called once per attempt.
            on_retry: Called with (attempt number, error) after each failed
                attempt that will be retried.
        """
        last_error: Exception | None = None
        attempts = max(1, self._policy.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                value = await operation()
            except Exception as e:
                last_error = e
                logger.debug("Attempt %d/%d failed: %s", attempt, attempts, e)
                if attempt < attempts:
                    if on_retry is not None:
                        await on_retry(attempt, e)
                    await self._sleep(self._policy.delay_seconds)
                continue
            self._consecutive_failures = 0
            return Outcome(value=value, error=None, attempts=attempt)

        self._consecutive_failures += 1
        return Outcome(value=None, error=last_error, attempts=attempts)
