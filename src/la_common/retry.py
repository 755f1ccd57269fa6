"""Bounded retry with exponential backoff and jitter for remote calls.

Only errors flagged ``retryable`` (timeouts, unreachable backend) are
retried; rejections and validation failures propagate immediately.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.la_common.errors import AppError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float = 10.0,
    jitter: bool = True,
) -> float:
    """Delay before retry number ``attempt`` (0-based)."""
    delay = min(base_delay * (2 ** attempt), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int,
    base_delay: float,
    name: str = "remote call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    attempt = 0
    while True:
        try:
            return await operation()
        except AppError as exc:
            if not exc.retryable or attempt >= max_retries:
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                "Attempt %d/%d of %s failed: %s. Retrying in %.2fs",
                attempt + 1,
                max_retries + 1,
                name,
                exc.message,
                delay,
            )
            attempt += 1
            await sleep(delay)
