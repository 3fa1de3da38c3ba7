"""
Process-wide request spacing for the Census API.

The Census API throttles clients that send requests too quickly, so
every outbound request goes through a single RateGate that keeps
successive requests at least `interval` seconds apart.
"""

import asyncio
import logging
import time

from census_mcp import config

logger = logging.getLogger(__name__)


class RateGate:
    """Spaces successive requests at least `interval` seconds apart.

    Without an explicit `min_interval`, the interval follows
    `config.RATE_LIMIT_MS` at each acquire.
    """

    def __init__(self, min_interval: float | None = None) -> None:
        self.min_interval = min_interval
        self.last_request_time = 0.0
        self._lock = asyncio.Lock()

    @property
    def interval(self) -> float:
        if self.min_interval is not None:
            return self.min_interval
        return config.RATE_LIMIT_MS / 1000

    async def acquire(self) -> None:
        # check-then-stamp must not interleave with another coroutine
        # waiting on the same gate
        async with self._lock:
            elapsed = time.monotonic() - self.last_request_time
            interval = self.interval
            if elapsed < interval:
                delay = interval - elapsed
                logger.debug(f"Rate limit: sleeping {delay * 1000:.0f}ms")
                await asyncio.sleep(delay)
            self.last_request_time = time.monotonic()

    def reset(self, min_interval: float | None = None) -> None:
        """Forget the last request and set the interval (None follows config)."""
        self.min_interval = min_interval
        self.last_request_time = 0.0
        self._lock = asyncio.Lock()


rate_gate = RateGate()
