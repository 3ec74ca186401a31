import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """In-memory TTL cache with LRU eviction.

    ``get_or_load`` collapses concurrent misses for the same key into a single
    loader call, so a burst of identical lookups reaches the upstream once.
    """

    def __init__(
        self,
        default_ttl: float = 60,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = asyncio.Lock()
        self._key_locks: Dict[str, asyncio.Lock] = {}
        self._key_waiters: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._cache[key]
                return None
            self._cache.move_to_end(key)
            return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        async with self._lock:
            ttl = self.default_ttl if ttl is None else ttl
            self._cache[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
            self._cache.move_to_end(key)
            while len(self._cache) > self.max_size:
                self._cache.popitem(last=False)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        cached = await self.get(key)
        if cached is not None:
            return cached

        key_lock = self._key_locks.setdefault(key, asyncio.Lock())
        self._key_waiters[key] = self._key_waiters.get(key, 0) + 1
        try:
            async with key_lock:
                # Another waiter may have filled the slot while we queued
                cached = await self.get(key)
                if cached is not None:
                    return cached
                value = await loader()
                await self.set(key, value, ttl=ttl)
                return value
        finally:
            # Last waiter out drops the per-key lock
            self._key_waiters[key] -= 1
            if not self._key_waiters[key]:
                del self._key_waiters[key]
                del self._key_locks[key]

    async def invalidate(self, key: str) -> None:
        async with self._lock:
            self._cache.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()

    def size(self) -> int:
        return len(self._cache)
