"""Memoized Discogs release detail fetcher."""

import logging
from typing import Any

from discogs_radio.application.cache.base_cache import InFlight, InMemoryCache
from discogs_radio.domain.ports import IDiscogsClient

logger = logging.getLogger(__name__)


class CachedReleaseFetcher:
    """Fetches release detail once per release id.

    Hey future me - release detail never changes for our purposes (tracklist, videos, images), so
    the cache has no TTL. Library expansion and the video resolver share one instance, which means
    expanding the collection already warms the cache the resolver reads later. Concurrent calls
    for the same id share one request via InFlight. Errors are NOT cached and propagate, callers
    decide whether an auth failure means "no release" (resolver) or "skip this release" (library).
    """

    def __init__(self, client: IDiscogsClient | None) -> None:
        self._client = client
        self._cache: InMemoryCache[int, dict[str, Any]] = InMemoryCache(default_ttl=None)
        self._pending: InFlight[int, dict[str, Any] | None] = InFlight()

    @property
    def available(self) -> bool:
        return self._client is not None

    async def get(self, release_id: int) -> dict[str, Any] | None:
        cached = await self._cache.get(release_id)
        if cached is not None:
            return cached
        if self._client is None:
            return None
        client = self._client
        return await self._pending.run(release_id, lambda: self._fetch(client, release_id))

    async def _fetch(self, client: IDiscogsClient, release_id: int) -> dict[str, Any] | None:
        release = await client.fetch_release(release_id)
        if release:
            await self._cache.set(release_id, release)
        else:
            logger.debug("Discogs returned no detail for release %s", release_id)
        return release or None

    async def clear(self) -> None:
        await self._cache.clear()
        self._pending.clear()
