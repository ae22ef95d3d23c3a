"""Rate limiters for outbound TBO calls."""

import asyncio
import time
from typing import Awaitable, Callable, Optional


class IntervalRateLimiter:
    """
    Enforces a minimum spacing between successive acquisitions.

    Usage:
        limiter = IntervalRateLimiter(interval=0.1)
        async with limiter:
            await client.hotel_details(...)

    The first acquisition never waits.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last: Optional[float] = None

    async def acquire(self) -> None:
        async with self._lock:
            if self._last is not None:
                wait = self._last + self.interval - self._clock()
                if wait > 0:
                    await self._sleep(wait)
            self._last = self._clock()

    async def __aenter__(self) -> "IntervalRateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class NoopRateLimiter:
    """Never waits."""

    async def __aenter__(self) -> "NoopRateLimiter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None
