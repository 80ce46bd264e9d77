"""Token-bucket rate limiter for remote translation calls."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Token bucket with lazy refill.

    At most ``max_tokens`` operations start within one ``refill_interval``
    without waiting. Tokens are topped up on access, never on a timer:
    every whole interval elapsed since the last refill adds ``refill_rate``
    tokens, capped at ``max_tokens``.
    """

    def __init__(
        self,
        max_tokens: int = 10,
        refill_rate: int = 1,
        refill_interval: float = 1.0,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be positive")
        if refill_interval <= 0:
            raise ValueError("refill_interval must be positive")
        if refill_rate > max_tokens:
            raise ValueError("refill_rate cannot exceed max_tokens")

        self.max_tokens = max_tokens
        self.refill_rate = refill_rate
        self.refill_interval = refill_interval
        self._clock = clock
        self._sleep = sleep
        self._tokens = max_tokens
        self._last_refill = clock()

    def _refill(self) -> None:
        now = self._clock()
        intervals = math.floor((now - self._last_refill) / self.refill_interval)
        to_add = intervals * self.refill_rate
        if to_add > 0:
            self._tokens = min(self.max_tokens, self._tokens + to_add)
            self._last_refill = now

    async def acquire(self) -> None:
        """Take one token, suspending until one is available."""
        while True:
            self._refill()
            if self._tokens > 0:
                self._tokens -= 1
                return
            wait = self._remaining_wait()
            logger.debug("Rate limit reached, waiting %.3fs", wait)
            await self._sleep(wait)

    def can_acquire(self) -> bool:
        self._refill()
        return self._tokens > 0

    def get_wait_time(self) -> float:
        """Seconds until a token becomes available (0 if one is available now)."""
        self._refill()
        if self._tokens > 0:
            return 0.0
        return self._remaining_wait()

    @property
    def tokens(self) -> int:
        self._refill()
        return self._tokens

    def reset(self) -> None:
        self._tokens = self.max_tokens
        self._last_refill = self._clock()

    def _remaining_wait(self) -> float:
        return max(0.0, self.refill_interval - (self._clock() - self._last_refill))
