"""
Sliding-window rate limiting over a pluggable counter store.

Features:
- Timestamp log per key (exact sliding window)
- Rejected hits are not recorded
- Store abstraction so a shared backend can replace the in-memory one
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import defaultdict, deque
from collections.abc import Callable

from .contracts import CounterStore
from .models import RateLimitDecision, RateLimitTier

logger = logging.getLogger(__name__)

__all__ = ["InMemoryCounterStore", "SlidingWindowRateLimiter"]


class InMemoryCounterStore:
    """Per-process hit log. Counters are lost on restart."""

    def __init__(self) -> None:
        self._hits: dict[str, deque[float]] = defaultdict(deque)

    async def window(self, key: str, now: float, window_seconds: float) -> list[float]:
        hits = self._hits.get(key)
        if not hits:
            return []
        cutoff = now - window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return []
        return list(hits)

    async def append(self, key: str, now: float) -> None:
        self._hits[key].append(now)

    async def reset(self, key: str) -> None:
        self._hits.pop(key, None)

    async def purge(self, now: float, window_seconds: float) -> int:
        cutoff = now - window_seconds
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]
        return len(stale)


class SlidingWindowRateLimiter:
    """
    Allow at most ``limit`` hits per key within any ``window_seconds`` span.

    Example:
        >>> limiter = SlidingWindowRateLimiter(InMemoryCounterStore(), limit=5, window_seconds=60)
        >>> decision = await limiter.hit("otp:127.0.0.1:a@b.com")
        >>> decision.allowed
        True
    """

    def __init__(
        self,
        store: CounterStore,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1 or window_seconds <= 0:
            raise ValueError("limit and window_seconds must be positive")
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = asyncio.Lock()

    @classmethod
    def for_tier(cls, store: CounterStore, tier: RateLimitTier) -> SlidingWindowRateLimiter:
        return cls(store, tier.limit, tier.window_seconds)

    async def hit(self, key: str) -> RateLimitDecision:
        """Record a hit for ``key`` if it fits in the window."""
        async with self._lock:
            now = self._clock()
            hits = await self.store.window(key, now, self.window_seconds)

            if len(hits) >= self.limit:
                retry_after = max(1, math.ceil(hits[0] + self.window_seconds - now))
                logger.debug("Rate limit hit for %s, retry in %ds", key, retry_after)
                return RateLimitDecision(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    retry_after=retry_after,
                )

            await self.store.append(key, now)
            return RateLimitDecision(
                allowed=True,
                limit=self.limit,
                remaining=self.limit - len(hits) - 1,
                retry_after=0,
            )

    async def reset(self, key: str) -> None:
        await self.store.reset(key)

    async def purge(self) -> int:
        """Drop keys with no hits inside the window."""
        return await self.store.purge(self._clock(), self.window_seconds)
