"""Client-side throttling for FuzzySearch API requests.

Implements:
- Semaphore for concurrent request limiting
- Token bucket rate limiter for requests per minute

Throttling only delays requests; it never retries or adds requests.
"""

import asyncio
import logging

from aiolimiter import AsyncLimiter

logger = logging.getLogger(__name__)


class RequestThrottle:
    """Per-client concurrency and rate limit, used as ``async with throttle:``."""

    def __init__(
        self,
        max_concurrent: int | None = None,
        rate_limit: int | None = None,
        period: float = 60,
    ):
        """Initialize the throttle.

        Args:
            max_concurrent: Max requests in flight at once, or None for unlimited
            rate_limit: Max requests per ``period``, or None for unlimited
            period: Rate limit window in seconds
        """
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if rate_limit is not None and rate_limit < 1:
            raise ValueError("rate_limit must be at least 1")

        self.max_concurrent = max_concurrent
        self.rate_limit = rate_limit
        self.period = period
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None
        self._limiter = AsyncLimiter(rate_limit, period) if rate_limit else None
        logger.debug(
            f"Created request throttle: concurrent={max_concurrent}, "
            f"rate={rate_limit}/{period}s"
        )

    async def __aenter__(self) -> "RequestThrottle":
        if self._semaphore is not None:
            await self._semaphore.acquire()
        if self._limiter is not None:
            try:
                await self._limiter.acquire()
            except BaseException:
                if self._semaphore is not None:
                    self._semaphore.release()
                raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._semaphore is not None:
            self._semaphore.release()


class NullThrottle(RequestThrottle):
    """Throttle that never waits."""

    def __init__(self):
        super().__init__(None, None)
