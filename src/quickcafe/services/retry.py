"""Retry policy shared by every external call."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from quickcafe.config import settings
from quickcafe.errors import RetryExhaustedError, TransientUpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Default retryable predicate: throttling and network failures."""
    return isinstance(exc, TransientUpstreamError)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with linear or exponential backoff.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Delay in seconds before the second attempt
        backoff: "linear" (base * attempt) or "exponential" (base * 2 ** (attempt - 1))
        retryable: Predicate deciding whether an exception is worth retrying
        sleep: Awaitable sleep, replaceable in tests
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff: str = "linear"
    retryable: Callable[[BaseException], bool] = is_transient
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff not in ("linear", "exponential"):
            raise ValueError(f"Unknown backoff: {self.backoff}")

    @classmethod
    def create(cls, **overrides) -> "RetryPolicy":
        """Factory method to create a RetryPolicy from settings.

        Args:
            **overrides: Field values that replace the settings defaults.

        Returns:
            Configured RetryPolicy
        """
        params = {
            "max_attempts": settings.retry_max_attempts,
            "base_delay": settings.retry_base_delay,
            "backoff": settings.retry_backoff,
        }
        params.update(overrides)
        return cls(**params)

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (1-based)."""
        if self.backoff == "exponential":
            return self.base_delay * 2 ** (attempt - 1)
        return self.base_delay * attempt

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        deadline: float | None = None,
    ) -> T:
        """Run operation, retrying retryable failures.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            deadline: Optional ``time.monotonic()`` value; no retry is scheduled
                whose delay would end past it

        Returns:
            The operation's result

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable error,
                or the deadline left no room for another attempt
            Exception: Any non-retryable error, unchanged
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as exc:
                if not self.retryable(exc):
                    raise
                if attempt == self.max_attempts:
                    raise RetryExhaustedError(
                        f"Gave up after {attempt} attempts: {exc}", attempts=attempt
                    ) from exc

                delay = self.delay_for(attempt)
                if deadline is not None and time.monotonic() + delay >= deadline:
                    raise RetryExhaustedError(
                        f"Deadline reached after {attempt} attempts: {exc}", attempts=attempt
                    ) from exc

                logger.warning(
                    "Attempt %d/%d failed (%s), retrying in %.1fs",
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                await self.sleep(delay)

        raise AssertionError("unreachable")
