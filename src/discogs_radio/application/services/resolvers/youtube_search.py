"""YouTube search resolver - the cold, expensive, quota-limited path.

Hey future me - order of short-circuits in search() matters and mirrors how cheap each check is:

1. track already has a youtube id           -> return it
2. positive cache hit (may be "")           -> return cached value
3. known unavailable (negative cache)       -> ""
4. same search already in flight            -> await that one
5. quota exceeded this session              -> "" without touching the network

force=True skips ALL of those (explicit user retry, alternate lookup) and isn't registered as
an in-flight search. Callers that must respect the quota flag check it before forcing. `avoid`
skips one video id (the one that just failed to embed) and is never written to the cache.

A backend failure returns "" WITHOUT negative-caching, otherwise one flaky request would hide a
track until the cache is cleared.
"""

import asyncio
import logging
from urllib.parse import quote_plus

from discogs_radio.application.cache.youtube_search_cache import (
    YouTubeSearchCache,
    search_cache_key,
)
from discogs_radio.domain.entities import Track
from discogs_radio.domain.exceptions import ExternalServiceError, QuotaExceededError
from discogs_radio.domain.ports import IYouTubeSearchClient

logger = logging.getLogger(__name__)

SEARCH_RESULTS_URL = "https://www.youtube.com/results?search_query="


class YouTubeSearchResolver:
    """Finds the best embeddable YouTube video for a track by "artist title" search."""

    def __init__(
        self,
        client: IYouTubeSearchClient | None,
        cache: YouTubeSearchCache,
        max_results: int = 5,
        min_interval: float = 0.5,
    ) -> None:
        self._client = client
        self._cache = cache
        self._max_results = max_results
        self._min_interval = min_interval
        self._throttle_lock = asyncio.Lock()
        self._last_search_time = 0.0
        self.network_calls = 0

    @property
    def cache(self) -> YouTubeSearchCache:
        return self._cache

    @property
    def quota_exceeded(self) -> bool:
        return self._cache.quota_exceeded

    async def search(
        self,
        track: Track,
        force: bool = False,
        max_results: int | None = None,
        avoid: str | None = None,
    ) -> str:
        """Return a video id for the track, or "" when none is known/found.

        Args:
            track: the track to search for
            force: bypass caches, in-flight sharing and the quota flag
            max_results: how many results to ask for
            avoid: video id that must not be returned (implies a network search)
        """
        key = search_cache_key(track.artist, track.title)
        limit = max_results or self._max_results

        if not force and avoid is None:
            if track.youtube_id:
                return track.youtube_id
            if await self._cache.has(key):
                return await self._cache.get(key) or ""
            if self._cache.is_unavailable(key):
                return ""
            pending = self._cache.pending.get(key)
            if pending is not None:
                return await asyncio.shield(pending)
            if self._cache.quota_exceeded:
                return ""
            return await self._cache.pending.run(
                key, lambda: self._search_remote(track, key, limit, force=False)
            )
        return await self._search_remote(track, key, limit, force=True, avoid=avoid)

    async def _throttle(self) -> None:
        async with self._throttle_lock:
            loop = asyncio.get_running_loop()
            elapsed = loop.time() - self._last_search_time
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_search_time = loop.time()

    async def _search_remote(
        self, track: Track, key: str, limit: int, force: bool, avoid: str | None = None
    ) -> str:
        if self._client is None:
            return ""
        await self._throttle()
        self.network_calls += 1
        try:
            result = await self._client.search(
                query=f"{track.artist} {track.title}",
                max_results=limit,
                artist=track.artist,
                title=track.title,
                refresh=force,
            )
        except QuotaExceededError as e:
            logger.warning("YouTube search quota hit for '%s': %s", track.title, e.message)
            self._cache.mark_quota_exceeded()
            return ""
        except ExternalServiceError as e:
            logger.error("YouTube search failed for '%s': %s", track.title, e.message)
            return ""

        if result.quota_exceeded:
            self._cache.mark_quota_exceeded()
            return ""

        if avoid is not None:
            alternates = [video.video_id for video in result.videos if video.video_id != avoid]
            if not alternates:
                logger.info("No alternate YouTube video for '%s'", track.title)
                return ""
            await self._cache.store(key, alternates[0])
            logger.info("Found alternate YouTube video for '%s': %s", track.title, alternates[0])
            return alternates[0]

        if result.videos:
            video_id = result.videos[0].video_id
            await self._cache.store(key, video_id)
            logger.info("Found YouTube video for '%s': %s", track.title, video_id)
            return video_id

        await self._cache.mark_unavailable(key)
        return ""

    async def clear(self) -> None:
        await self._cache.clear()

    @staticmethod
    def search_url(track: Track) -> str:
        """Link to run the same search on youtube.com (the quota escape hatch)."""
        return SEARCH_RESULTS_URL + quote_plus(f"{track.artist} {track.title}")

