"""
Rate Limit Domain - Sliding-window limits per client key.
"""

from .contracts import CounterStore
from .limiter import InMemoryCounterStore, SlidingWindowRateLimiter
from .models import RateLimitDecision, RateLimitTier, tiers_from_settings

__all__ = [
    "CounterStore",
    "InMemoryCounterStore",
    "SlidingWindowRateLimiter",
    "RateLimitDecision",
    "RateLimitTier",
    "tiers_from_settings",
]
