"""Sliding-window rate limiter keyed by caller identity."""
from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, List

__all__ = [
    "RateDecision",
    "RateWindowStore",
    "InMemoryRateWindowStore",
    "RateLimiter",
]


class RateDecision(str, Enum):
    ADMITTED = "admitted"
    LIMITED = "limited"


class RateWindowStore(ABC):
    """Per-caller ordered request timestamps."""

    @abstractmethod
    async def recent(self, key: str, since: float) -> List[float]:
        """Drop timestamps at or before ``since`` and return the rest."""

    @abstractmethod
    async def append(self, key: str, ts: float) -> None:
        """Record one request at ``ts``."""


class InMemoryRateWindowStore(RateWindowStore):
    def __init__(self) -> None:
        self._windows: Dict[str, List[float]] = {}
        self._lock = asyncio.Lock()

    async def recent(self, key: str, since: float) -> List[float]:
        async with self._lock:
            retained = [ts for ts in self._windows.get(key, []) if ts > since]
            if retained:
                self._windows[key] = retained
            else:
                self._windows.pop(key, None)
            return list(retained)

    async def append(self, key: str, ts: float) -> None:
        async with self._lock:
            self._windows.setdefault(key, []).append(ts)


class RateLimiter:
    """Caps admitted requests per caller to ``max_requests`` per ``window_sec``.

    ``check`` only reads the window; the caller decides when a request has
    actually cost something and calls ``record`` then.
    """

    def __init__(
        self,
        store: RateWindowStore | None = None,
        max_requests: int = 10,
        window_sec: float = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store or InMemoryRateWindowStore()
        self._max_requests = max_requests
        self._window = window_sec
        self._clock = clock

    async def check(self, caller_id: str) -> RateDecision:
        recent = await self._store.recent(caller_id, self._clock() - self._window)
        if len(recent) >= self._max_requests:
            return RateDecision.LIMITED
        return RateDecision.ADMITTED

    async def record(self, caller_id: str) -> None:
        await self._store.append(caller_id, self._clock())

    async def remaining(self, caller_id: str) -> int:
        recent = await self._store.recent(caller_id, self._clock() - self._window)
        return max(self._max_requests - len(recent), 0)
