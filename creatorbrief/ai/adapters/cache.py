"""Completion cache for the adapter layer.

CompletionCache – storage contract used by the orchestrator.
InMemoryCompletionCache – process-local TTL cache keyed by request fingerprint.
"""
from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

__all__ = [
    "CompletionCache",
    "InMemoryCompletionCache",
]

DEFAULT_TTL_SEC = 3600


class CompletionCache(ABC):
    """Maps a request fingerprint to a previously fetched raw completion."""

    @abstractmethod
    async def get(self, fingerprint: str) -> Optional[str]:
        """Return the cached text, or None when absent or stale."""

    @abstractmethod
    async def put(self, fingerprint: str, text: str) -> None:
        """Store or overwrite the entry, stamped with the current time."""


class InMemoryCompletionCache(CompletionCache):
    """Simple asyncio-safe TTL cache for fingerprint → completion text."""

    def __init__(
        self,
        ttl_sec: float = DEFAULT_TTL_SEC,
        max_size: Optional[int] = 2048,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl_sec
        self._max_size = max_size
        self._clock = clock
        self._store: Dict[str, Tuple[float, str]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    async def get(self, fingerprint: str) -> Optional[str]:
        async with self._lock:
            entry = self._store.get(fingerprint)
            if not entry:
                return None
            ts, text = entry
            if self._clock() - ts >= self._ttl:
                # stale, left in place until the next put overwrites it
                return None
            return text

    async def put(self, fingerprint: str, text: str) -> None:
        async with self._lock:
            if (
                self._max_size
                and fingerprint not in self._store
                and len(self._store) >= self._max_size
            ):
                # Evict oldest
                oldest_key = min(self._store.items(), key=lambda kv: kv[1][0])[0]
                self._store.pop(oldest_key, None)
            self._store[fingerprint] = (self._clock(), text)

    def __len__(self) -> int:
        return len(self._store)
