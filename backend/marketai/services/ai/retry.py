"""
Bounded retries with linear backoff.

The delay before retry n (1-indexed) is ``base_delay_ms * n``. The last
failure is re-raised unchanged.
"""
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from marketai.core.logging import get_logger
from marketai.core.metrics import record_inference_retry

logger = get_logger(__name__)

T = TypeVar("T")


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int,
    base_delay_ms: float = 250,
    *,
    should_retry: Optional[Callable[[BaseException], bool]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` up to ``max_retries + 1`` times.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_retries: Number of retries after the first attempt
        base_delay_ms: Backoff unit in milliseconds
        should_retry: Optional predicate; errors it rejects are raised at once
        sleep: Awaitable sleep in seconds (injectable for tests)

    Raises:
        The error of the final (or first non-retriable) attempt.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_retries:
                raise
            if should_retry is not None and not should_retry(exc):
                raise

            attempt += 1
            delay_ms = base_delay_ms * attempt
            record_inference_retry()
            logger.warning(
                "inference_retry_scheduled",
                attempt=attempt,
                max_retries=max_retries,
                delay_ms=delay_ms,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            await sleep(delay_ms / 1000.0)
