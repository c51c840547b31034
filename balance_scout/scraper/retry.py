"""
Balance Scout - Retry Policy

Bounded retry with exponential backoff. Two independent instances are used:

- step policy: guards single click/submit actions against timing races
  (element not yet interactive). Delay = 0.2s * 2^attempt.
- flow policy: spacing between whole-flow attempts, which restart the
  navigation from scratch. Delay = 1s * 2^attempt.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from balance_scout.config import settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """
    Exponential-backoff retry executor.

    Usage:
        policy = RetryPolicy(base_delay_seconds=0.2, name="step")
        await policy.retry(lambda: page.click("a.btn"), max_attempts=3)
    """

    def __init__(
        self,
        base_delay_seconds: float,
        name: str = "retry",
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.base_delay_seconds = base_delay_seconds
        self.name = name
        self._sleep = sleep or asyncio.sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff in seconds after the given 1-based attempt failed."""
        return self.base_delay_seconds * (2 ** attempt)

    async def wait(self, attempt: int) -> None:
        """Sleep for the backoff that follows the given attempt."""
        await self._sleep(self.delay_for(attempt))

    async def retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int,
    ) -> T:
        """
        Run operation up to max_attempts times.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            max_attempts: Upper bound on calls (>= 1).

        Returns:
            The first successful result.

        Raises:
            The exception of the last attempt once all attempts have failed.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                last_error = e
                if attempt == max_attempts:
                    break
                delay = self.delay_for(attempt)
                logger.debug(
                    "retry_attempt_failed",
                    policy=self.name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error_type=type(e).__name__,
                    wait_seconds=delay,
                    source="retry",
                )
                await self._sleep(delay)

        logger.debug(
            "retry_exhausted",
            policy=self.name,
            max_attempts=max_attempts,
            error_type=type(last_error).__name__,
            source="retry",
        )
        assert last_error is not None
        raise last_error


def step_retry_policy() -> RetryPolicy:
    """Fine-grained policy for individual browser interactions."""
    return RetryPolicy(settings.STEP_RETRY_BASE_DELAY_SECONDS, name="step")


def flow_retry_policy() -> RetryPolicy:
    """Coarse policy spacing whole-flow attempts."""
    return RetryPolicy(settings.FLOW_RETRY_BASE_DELAY_SECONDS, name="flow")
