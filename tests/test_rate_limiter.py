"""Tests for per-site request spacing."""

import asyncio

import pytest

from product_scraper.ingest.rate_limiter import SiteRateLimiter


class FakeClock:

    def __init__(self, now: float = 100.0):
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return SiteRateLimiter(clock=clock, sleep=clock.sleep)


@pytest.mark.asyncio
async def test_first_request_does_not_wait(limiter, clock):
    assert await limiter.acquire("amazon", 3.0) == 0
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_same_key_is_spaced(limiter, clock):
    await limiter.acquire("amazon", 3.0)
    clock.now += 1.0

    waited = await limiter.acquire("amazon", 3.0)

    assert waited == pytest.approx(2.0)
    assert clock.sleeps == [pytest.approx(2.0)]


@pytest.mark.asyncio
async def test_different_keys_are_independent(limiter, clock):
    await limiter.acquire("amazon", 3.0)
    assert await limiter.acquire("ebay", 2.0) == 0
    assert await limiter.acquire("shop.example", 2.0) == 0


@pytest.mark.asyncio
async def test_no_wait_after_interval_elapsed(limiter, clock):
    await limiter.acquire("jumia", 2.0)
    clock.now += 5.0
    assert await limiter.acquire("jumia", 2.0) == 0


@pytest.mark.asyncio
async def test_concurrent_acquires_are_serialized(limiter, clock):
    waits = await asyncio.gather(*(limiter.acquire("ebay", 1.0) for _ in range(3)))
    assert sorted(waits) == [0, 1.0, 1.0]
