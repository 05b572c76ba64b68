"""Fixed-interval rate limiting for upstream APIs."""
import asyncio
import time
from typing import Optional


class RateLimiter:
    """
    Space out requests to one upstream API.

    ``acquire()`` returns once at least ``min_interval`` seconds have passed
    since the previous acquisition. Fetchers create one limiter per upstream
    per fetch session, so requests against one API are strictly sequential.
    """

    def __init__(self, min_interval: float, name: str = ""):
        self.min_interval = max(0.0, float(min_interval))
        self.name = name
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self):
        """Wait for the next request slot."""
        async with self._lock:
            if self._last_call is not None and self.min_interval > 0:
                elapsed = time.monotonic() - self._last_call
                if elapsed < self.min_interval:
                    await asyncio.sleep(self.min_interval - elapsed)
            self._last_call = time.monotonic()

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False
