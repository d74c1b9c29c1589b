"""Unit tests for api/ratelimit.py."""

import asyncio

import pytest

from fuzzysearch.api.ratelimit import NullThrottle, RequestThrottle


class TestRequestThrottle:
    def test_unlimited_by_default(self):
        throttle = RequestThrottle()
        assert throttle._semaphore is None
        assert throttle._limiter is None

    def test_configured(self):
        throttle = RequestThrottle(max_concurrent=3, rate_limit=50)
        assert throttle._semaphore is not None
        assert throttle._limiter.max_rate == 50
        assert throttle._limiter.time_period == 60

    @pytest.mark.parametrize("kwargs", [{"max_concurrent": 0}, {"rate_limit": 0}])
    def test_rejects_non_positive(self, kwargs):
        with pytest.raises(ValueError):
            RequestThrottle(**kwargs)

    @pytest.mark.asyncio
    async def test_limits_concurrency(self):
        throttle = RequestThrottle(max_concurrent=1)
        in_flight = 0
        peak = 0

        async def call():
            nonlocal in_flight, peak
            async with throttle:
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1

        await asyncio.gather(*(call() for _ in range(4)))
        assert peak == 1

    @pytest.mark.asyncio
    async def test_releases_on_exception(self):
        throttle = RequestThrottle(max_concurrent=1)
        with pytest.raises(RuntimeError):
            async with throttle:
                raise RuntimeError("boom")
        assert not throttle._semaphore.locked()


class TestNullThrottle:
    @pytest.mark.asyncio
    async def test_never_waits(self):
        throttle = NullThrottle()
        async with throttle:
            async with throttle:
                pass
