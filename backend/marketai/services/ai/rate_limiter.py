"""
Outbound rate limiter for the inference endpoint.

A single slot per limiter: successive scheduled operations start at least
``min_delay_ms`` apart. Spacing is measured between starts, so a slow
operation does not push the next one back.
"""
import asyncio
import time
from typing import Awaitable, Callable, TypeVar

from marketai.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RateLimiter:
    """Serializes the start of outbound calls with a minimum inter-call delay."""

    def __init__(
        self,
        min_delay_ms: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_delay_ms = min_delay_ms
        self._clock = clock
        self._sleep = sleep
        self._next_available_at = 0.0
        self._lock = asyncio.Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    async def schedule(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Wait for the next free slot, then run ``operation``.

        The lock covers only the wait and the slot update, not the operation
        itself, so callers queue up in FIFO order behind the delay.
        """
        async with self._lock:
            wait_ms = max(0.0, self._next_available_at - self._now_ms())
            if wait_ms > 0:
                logger.debug("rate_limiter_waiting", wait_ms=round(wait_ms, 1))
                await self._sleep(wait_ms / 1000.0)
            self._next_available_at = self._now_ms() + self.min_delay_ms

        return await operation()
