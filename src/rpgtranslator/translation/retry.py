"""Exponential-backoff retry executor."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Hook signatures: (attempt, error, delay), (attempt,), (attempt, error)
RetryHook = Callable[[int, BaseException, float], None]
SuccessHook = Callable[[int], None]
FailureHook = Callable[[int, BaseException], None]


def _always(_: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 1.0  # seconds
    max_delay: float = 10.0
    backoff_factor: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if self.initial_delay <= 0:
            raise ValueError("initial_delay must be positive")
        if self.max_delay <= 0:
            raise ValueError("max_delay must be positive")
        if self.backoff_factor <= 0:
            raise ValueError("backoff_factor must be positive")
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be greater than or equal to initial_delay")

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows failed attempt ``attempt`` (1-based)."""
        return min(self.initial_delay * self.backoff_factor ** (attempt - 1), self.max_delay)


class RetryTracker:
    """Records what happened during a retried call, for error reports."""

    def __init__(self) -> None:
        self.attempts = 0
        self.retries = 0
        self.delays: list[float] = []
        self.last_error: BaseException | None = None

    def on_retry(self, attempt: int, error: BaseException, delay: float) -> None:
        self.retries += 1
        self.delays.append(delay)
        self.last_error = error

    def on_success(self, attempt: int) -> None:
        self.attempts = attempt

    def on_failure(self, attempt: int, error: BaseException) -> None:
        self.attempts = attempt
        self.last_error = error


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    retryable: Callable[[BaseException], bool] = _always,
    on_retry: RetryHook | None = None,
    on_success: SuccessHook | None = None,
    on_failure: FailureHook | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds, attempts run out, or it fails for good.

    The last error is re-raised unchanged. Hooks are for observability only.
    """
    policy = policy or RetryPolicy()

    attempt = 1
    while True:
        try:
            result = await operation()
        except Exception as e:
            if attempt >= policy.max_attempts or not retryable(e):
                if on_failure is not None:
                    on_failure(attempt, e)
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed (%s), retrying in %.1fs",
                attempt, policy.max_attempts, e, delay,
            )
            if on_retry is not None:
                on_retry(attempt, e, delay)
            await sleep(delay)
            attempt += 1
        else:
            if on_success is not None:
                on_success(attempt)
            return result
