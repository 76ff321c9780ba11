"""
Rate Limit Contracts - Interface for hit-log storage.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CounterStore(Protocol):
    """Contract for sliding-window hit logs keyed by client."""

    async def window(self, key: str, now: float, window_seconds: float) -> list[float]:
        """Return hit times for ``key`` newer than ``now - window_seconds``, oldest first."""
        ...

    async def append(self, key: str, now: float) -> None:
        ...

    async def reset(self, key: str) -> None:
        ...

    async def purge(self, now: float, window_seconds: float) -> int:
        """Forget keys whose newest hit has left the window."""
        ...
