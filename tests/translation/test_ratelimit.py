"""Tests for the token-bucket rate limiter."""

import asyncio

import pytest

from rpgtranslator.translation.ratelimit import RateLimiter
from tests.conftest import FakeClock, RecordingSleep


class TestRateLimiter:
    def test_window_of_five(self):
        clock = FakeClock()
        limiter = RateLimiter(max_tokens=5, refill_rate=5, refill_interval=1.0, clock=clock)

        for _ in range(5):
            assert limiter.can_acquire()
            asyncio.run(limiter.acquire())
        assert not limiter.can_acquire()

        clock.advance(1.0)
        assert limiter.can_acquire()
        assert limiter.tokens == 5

    def test_partial_interval_adds_nothing(self):
        clock = FakeClock()
        limiter = RateLimiter(max_tokens=2, refill_rate=1, refill_interval=1.0, clock=clock)
        asyncio.run(limiter.acquire())
        asyncio.run(limiter.acquire())

        clock.advance(0.9)
        assert limiter.tokens == 0
        assert limiter.get_wait_time() == pytest.approx(0.1)

    def test_refill_is_capped(self):
        clock = FakeClock()
        limiter = RateLimiter(max_tokens=3, refill_rate=1, refill_interval=1.0, clock=clock)
        asyncio.run(limiter.acquire())
        clock.advance(100.0)
        assert limiter.tokens == 3

    def test_acquire_waits_for_refill(self):
        clock = FakeClock()
        sleep = RecordingSleep(clock)
        limiter = RateLimiter(max_tokens=1, refill_rate=1, refill_interval=2.0, clock=clock, sleep=sleep)

        async def run():
            await limiter.acquire()
            await limiter.acquire()

        asyncio.run(run())
        assert sleep.delays == [pytest.approx(2.0)]

    def test_wait_time_zero_when_available(self):
        limiter = RateLimiter(clock=FakeClock())
        assert limiter.get_wait_time() == 0.0

    def test_reset(self):
        clock = FakeClock()
        limiter = RateLimiter(max_tokens=2, refill_rate=1, clock=clock)
        asyncio.run(limiter.acquire())
        limiter.reset()
        assert limiter.tokens == 2

    @pytest.mark.parametrize("kwargs", [
        {"max_tokens": 0},
        {"refill_rate": 0},
        {"refill_interval": 0},
        {"max_tokens": 1, "refill_rate": 2},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            RateLimiter(**kwargs)
