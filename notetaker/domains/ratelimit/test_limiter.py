"""Tests for the sliding-window rate limiter."""

import pytest

from notetaker.config.errors import ErrorCode
from notetaker.config.settings import Settings

from .contracts import CounterStore
from .limiter import InMemoryCounterStore, SlidingWindowRateLimiter
from .models import tiers_from_settings


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(InMemoryCounterStore(), limit=3, window_seconds=60, clock=clock)


def test_in_memory_store_satisfies_contract():
    assert isinstance(InMemoryCounterStore(), CounterStore)


async def test_allows_up_to_limit(limiter: SlidingWindowRateLimiter):
    remaining = []
    for _ in range(3):
        decision = await limiter.hit("k")
        assert decision.allowed
        remaining.append(decision.remaining)
    assert remaining == [2, 1, 0]

    decision = await limiter.hit("k")
    assert decision.allowed is False
    assert decision.retry_after == 60


async def test_window_slides(limiter: SlidingWindowRateLimiter, clock: FakeClock):
    """Test old hits fall out of the window one by one."""
    await limiter.hit("k")
    clock.now += 20
    await limiter.hit("k")
    await limiter.hit("k")

    clock.now += 30
    decision = await limiter.hit("k")
    assert decision.allowed is False
    assert decision.retry_after == 10

    clock.now += 10
    assert (await limiter.hit("k")).allowed


async def test_rejected_hits_are_not_counted(limiter: SlidingWindowRateLimiter, clock: FakeClock):
    for _ in range(3):
        await limiter.hit("k")
    for _ in range(5):
        assert not (await limiter.hit("k")).allowed
    clock.now += 61
    assert (await limiter.hit("k")).remaining == 2


async def test_keys_are_independent(limiter: SlidingWindowRateLimiter):
    for _ in range(3):
        await limiter.hit("a")
    assert not (await limiter.hit("a")).allowed
    assert (await limiter.hit("b")).allowed


async def test_reset_and_purge(limiter: SlidingWindowRateLimiter, clock: FakeClock):
    for _ in range(3):
        await limiter.hit("a")
    await limiter.reset("a")
    assert (await limiter.hit("a")).allowed

    await limiter.hit("b")
    clock.now += 120
    assert await limiter.purge() == 2


def test_invalid_configuration():
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(InMemoryCounterStore(), limit=0, window_seconds=60)


def test_default_tiers():
    tiers = tiers_from_settings(Settings(_env_file=None))
    assert tiers["general"].limit == 100
    assert tiers["general"].window_seconds == 900
    assert tiers["auth"].limit == 10
    assert tiers["otp"].limit == 15
    assert tiers["otp"].window_seconds == 300
    assert tiers["signup"].limit == 5
    assert tiers["signup"].code == ErrorCode.SIGNUP_RATE_LIMIT_EXCEEDED
