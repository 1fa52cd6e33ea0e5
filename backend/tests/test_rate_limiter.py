"""
Unit tests for the outbound rate limiter.

Spacing is checked with a fake clock/sleep pair, plus one real-time check.
"""
import asyncio
import time

import pytest

from marketai.services.ai.rate_limiter import RateLimiter


class FakeTime:
    """Clock and sleep that advance together without real waiting."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.asyncio
async def test_first_call_runs_without_waiting():
    fake = FakeTime()
    limiter = RateLimiter(100, clock=fake.clock, sleep=fake.sleep)

    async def op():
        return "done"

    assert await limiter.schedule(op) == "done"
    assert fake.sleeps == []


@pytest.mark.asyncio
async def test_consecutive_starts_are_spaced_by_min_delay():
    fake = FakeTime()
    limiter = RateLimiter(100, clock=fake.clock, sleep=fake.sleep)
    starts = []

    async def op():
        starts.append(fake.now)

    for _ in range(3):
        await limiter.schedule(op)

    assert starts == pytest.approx([0.0, 0.1, 0.2])


@pytest.mark.asyncio
async def test_elapsed_time_counts_towards_the_delay():
    fake = FakeTime()
    limiter = RateLimiter(100, clock=fake.clock, sleep=fake.sleep)

    async def op():
        return None

    await limiter.schedule(op)
    fake.now += 0.06
    await limiter.schedule(op)

    assert fake.sleeps == pytest.approx([0.04])


@pytest.mark.asyncio
async def test_zero_delay_never_sleeps():
    fake = FakeTime()
    limiter = RateLimiter(0, clock=fake.clock, sleep=fake.sleep)

    async def op():
        return None

    for _ in range(5):
        await limiter.schedule(op)

    assert fake.sleeps == []


@pytest.mark.asyncio
async def test_operation_errors_propagate():
    limiter = RateLimiter(0)

    async def op():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await limiter.schedule(op)


@pytest.mark.asyncio
async def test_concurrent_callers_are_spaced_in_real_time():
    limiter = RateLimiter(50)
    starts = []

    async def op():
        starts.append(time.monotonic())

    await asyncio.gather(*(limiter.schedule(op) for _ in range(3)))

    gaps = [b - a for a, b in zip(starts, starts[1:])]
    assert len(gaps) == 2
    # Small tolerance for timer granularity
    assert all(gap >= 0.045 for gap in gaps)
