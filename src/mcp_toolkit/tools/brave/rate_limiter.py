"""Serializes outbound search requests.

At most ``max_parallel`` requests run at once, and a new request never starts
sooner than ``interval_seconds`` after the previous one finished.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """Semaphore plus minimum spacing between calls.

    The limiter is not reentrant: calling :meth:`run` from inside an action
    already running under the same limiter deadlocks when ``max_parallel``
    is 1.

    Example:
        >>> limiter = RateLimiter(max_parallel=1, interval_seconds=1.0)
        >>> response = await limiter.run(lambda: client.get("/web/search"))
    """

    def __init__(
        self,
        max_parallel: int = 1,
        interval_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_parallel < 1:
            raise ValueError("max_parallel must be at least 1")
        self.max_parallel = max_parallel
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._semaphore = asyncio.Semaphore(max_parallel)
        self._last_release: float | None = None

    async def _wait_for_interval(self) -> None:
        if self._last_release is None:
            return
        remaining = self.interval_seconds - (self._clock() - self._last_release)
        if remaining > 0:
            logger.debug(f"Rate limiter waiting {remaining:.3f}s")
            await self._sleep(remaining)

    async def run(self, action: Callable[[], Awaitable[T]]) -> T:
        """Run ``action`` once a slot is free and the interval has elapsed."""
        async with self._semaphore:
            await self._wait_for_interval()
            try:
                return await action()
            finally:
                self._last_release = self._clock()
