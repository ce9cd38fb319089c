# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: time-bounded snapshot holder.
One upstream snapshot per slot, replaced wholesale, never patched.
"""

import time
from typing import Awaitable, Callable, Generic, Iterable, Optional, TypeVar

from oncall_phone.metrics.prometheus import CACHE_EVENTS

T = TypeVar("T")


class CacheSlot(Generic[T]):
    """
    Holds either nothing or a complete snapshot plus its expiry.

    The snapshot and expiry live in a single tuple so a refresh is one
    reference swap; readers never see a half-written slot. Concurrent misses
    are not deduplicated: each caller refills and the last write wins.
    """

    def __init__(
        self,
        name: str,
        duration: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.duration = duration
        self._clock = clock
        self._entry: Optional[tuple[tuple[T, ...], float]] = None

    # ── Read ──

    def peek(self) -> Optional[tuple[T, ...]]:
        """Current snapshot if still fresh, else None. Never refetches."""
        entry = self._entry
        if entry is None:
            return None
        data, expires_at = entry
        if self._clock() >= expires_at:
            return None
        return data

    def seconds_remaining(self) -> float:
        entry = self._entry
        if entry is None:
            return 0.0
        return max(0.0, entry[1] - self._clock())

    async def get_or_refresh(
        self, loader: Callable[[], Awaitable[Iterable[T]]]
    ) -> tuple[T, ...]:
        """Return the fresh snapshot, or await ``loader`` and store its result."""
        cached = self.peek()
        if cached is not None:
            CACHE_EVENTS.labels(cache=self.name, event="hit").inc()
            return cached

        CACHE_EVENTS.labels(cache=self.name, event="miss").inc()
        data = tuple(await loader())
        self.store(data)
        return data

    # ── Write ──

    def store(self, data: Iterable[T]) -> None:
        self._entry = (tuple(data), self._clock() + self.duration)

    def invalidate(self) -> None:
        """Drop the snapshot so the next read refetches regardless of age."""
        self._entry = None
        CACHE_EVENTS.labels(cache=self.name, event="invalidate").inc()
