"""Per-site request spacing."""

import asyncio
import logging
import time
from collections import defaultdict
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class SiteRateLimiter:
    """
    Enforces a minimum interval between requests to the same site.

    Each site key has its own lock, so workers targeting different sites
    never wait on each other.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.last_request: dict[str, float] = {}
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep

    async def acquire(self, key: str, min_interval: float) -> float:
        """
        Wait until min_interval seconds have passed since the last request for key.

        Args:
            key: Site key (source name or host)
            min_interval: Minimum seconds between requests

        Returns:
            Seconds actually waited
        """
        async with self.locks[key]:
            wait_needed = 0.0
            last_time = self.last_request.get(key)
            if last_time is not None:
                elapsed = self._clock() - last_time
                wait_needed = max(0.0, min_interval - elapsed)

            if wait_needed > 0:
                logger.debug(f"Rate limit for {key}: waiting {wait_needed:.2f}s")
                await self._sleep(wait_needed)

            self.last_request[key] = self._clock()
            return wait_needed


# Global rate limiter instance
rate_limiter = SiteRateLimiter()
