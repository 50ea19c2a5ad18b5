"""Base cache interface, in-memory implementation and in-flight deduplication."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

K = TypeVar("K")  # Key type
V = TypeVar("V")  # Value type


@dataclass
class CacheEntry(Generic[V]):
    """Cache entry with value and metadata.

    ttl_seconds=None means the entry never expires (release detail, cover art).
    """

    value: V
    created_at: float
    ttl_seconds: int | None

    def is_expired(self) -> bool:
        """Check if cache entry is expired."""
        if self.ttl_seconds is None:
            return False
        return time.time() > (self.created_at + self.ttl_seconds)


class BaseCache(ABC, Generic[K, V]):
    """Base cache interface for all cache implementations."""

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Get value from cache.

        Returns:
            Cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl_seconds: int | None = 3600) -> None:
        """Set value in cache (ttl_seconds=None keeps it forever)."""
        pass

    @abstractmethod
    async def contains(self, key: K) -> bool:
        """True if key holds a live entry, even when the cached value is falsy."""
        pass

    @abstractmethod
    async def delete(self, key: K) -> bool:
        """Delete value from cache, returning True if it existed."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Clear all entries from cache."""
        pass


class InMemoryCache(BaseCache[K, V]):
    """Dict-backed cache guarded by an asyncio.Lock.

    Hey future me - lives only as long as the process (or the session object owning it). get()
    evicts expired entries as a side effect, so "expired" and "missing" look the same to callers.
    contains() exists because some caches legitimately store "" (searched, nothing found) and
    a plain get() can't tell that apart from a miss.
    """

    def __init__(self, default_ttl: int | None = 3600) -> None:
        self._cache: dict[K, CacheEntry[V]] = {}
        self._lock = asyncio.Lock()
        self._default_ttl = default_ttl

    async def _live_entry(self, key: K) -> CacheEntry[V] | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._cache[key]
            return None
        return entry

    async def get(self, key: K) -> V | None:
        async with self._lock:
            entry = await self._live_entry(key)
            return entry.value if entry else None

    async def set(self, key: K, value: V, ttl_seconds: int | None = None) -> None:
        async with self._lock:
            self._cache[key] = CacheEntry(
                value=value,
                created_at=time.time(),
                ttl_seconds=ttl_seconds if ttl_seconds is not None else self._default_ttl,
            )

    async def contains(self, key: K) -> bool:
        async with self._lock:
            return await self._live_entry(key) is not None

    async def delete(self, key: K) -> bool:
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()

    # Not locked, stats are a monitoring snapshot.
    def get_stats(self) -> dict[str, Any]:
        total_entries = len(self._cache)
        expired_entries = sum(1 for entry in self._cache.values() if entry.is_expired())
        return {
            "total_entries": total_entries,
            "active_entries": total_entries - expired_entries,
            "expired_entries": expired_entries,
        }


class InFlight(Generic[K, V]):
    """Shares one pending task per key between concurrent callers.

    Hey future me - this is what stops the verifier, the prefetcher and the foreground resolver
    from firing three identical network calls for the same release/track. The first caller
    starts the task, everyone else awaits the same task. The entry is removed the moment the
    task finishes (success OR failure), so the next call after completion starts fresh. We
    await through asyncio.shield so one cancelled caller doesn't cancel the work the others
    are waiting on.
    """

    def __init__(self) -> None:
        self._pending: dict[K, asyncio.Future[V]] = {}

    def __contains__(self, key: K) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def get(self, key: K) -> "asyncio.Future[V] | None":
        """The pending task for key, if one is running."""
        return self._pending.get(key)

    async def run(self, key: K, factory: Callable[[], Awaitable[V]]) -> V:
        """Await the pending task for key, starting it via factory if there is none."""
        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.ensure_future(factory())
            self._pending[key] = pending
            pending.add_done_callback(lambda done, key=key: self._discard(key, done))
        return await asyncio.shield(pending)

    def _discard(self, key: K, done: asyncio.Future[V]) -> None:
        if self._pending.get(key) is done:
            del self._pending[key]

    def clear(self) -> None:
        self._pending.clear()
