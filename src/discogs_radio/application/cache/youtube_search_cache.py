"""Session-scoped YouTube search cache.

Hey future me - this object replaces module-level dicts. One instance per application session,
injected into the search resolver, so tests get isolated caches for free. It carries four
things, all keyed by ``f"{artist}-{title}".lower()``:

- positive cache: key -> video id ("" is a valid cached value meaning "searched, nothing")
- negative set: keys known to have no embeddable video
- in-flight searches, shared between concurrent non-forced callers
- the sticky quota flag: once set, every non-forced search short-circuits until clear()
"""

import logging
from typing import Any

from discogs_radio.application.cache.base_cache import InFlight, InMemoryCache

logger = logging.getLogger(__name__)


def search_cache_key(artist: str, title: str) -> str:
    """Cache key of a track's YouTube search."""
    return f"{artist}-{title}".lower()


class YouTubeSearchCache:
    """Positive/negative search cache plus the session quota flag."""

    def __init__(self, ttl_seconds: int = 6 * 3600) -> None:
        self._videos: InMemoryCache[str, str] = InMemoryCache(default_ttl=ttl_seconds)
        self._unavailable: set[str] = set()
        self.pending: InFlight[str, str] = InFlight()
        self._quota_exceeded = False

    @property
    def quota_exceeded(self) -> bool:
        return self._quota_exceeded

    def mark_quota_exceeded(self) -> None:
        if not self._quota_exceeded:
            logger.warning("YouTube search quota exceeded, non-forced searches disabled")
        self._quota_exceeded = True

    async def has(self, key: str) -> bool:
        return await self._videos.contains(key)

    async def get(self, key: str) -> str | None:
        """Cached video id, "" for a cached miss, None if never cached."""
        return await self._videos.get(key)

    async def store(self, key: str, video_id: str) -> None:
        await self._videos.set(key, video_id)
        if video_id:
            self._unavailable.discard(key)

    async def mark_unavailable(self, key: str) -> None:
        self._unavailable.add(key)
        await self._videos.set(key, "")

    def is_unavailable(self, key: str) -> bool:
        return key in self._unavailable

    async def clear(self) -> None:
        """Fresh session: drops every cached result and resets the quota flag."""
        await self._videos.clear()
        self._unavailable.clear()
        self.pending.clear()
        self._quota_exceeded = False
        logger.info("YouTube search cache cleared")

    def get_stats(self) -> dict[str, Any]:
        return {
            **self._videos.get_stats(),
            "unavailable": len(self._unavailable),
            "pending": len(self.pending),
            "quota_exceeded": self._quota_exceeded,
        }
