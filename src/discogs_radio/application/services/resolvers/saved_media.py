"""Saved-media resolver - provider links previously persisted for a release."""

import logging

from discogs_radio.application.cache.base_cache import InFlight, InMemoryCache
from discogs_radio.domain.entities import (
    PlaybackProvider,
    ResolvedMedia,
    SavedMediaLink,
    Track,
)
from discogs_radio.domain.ports import ITrackMediaRepository

logger = logging.getLogger(__name__)


def select_saved_media(links: list[SavedMediaLink], position: str | None) -> ResolvedMedia | None:
    """Pick bandcamp first, then youtube, among exact-position rows (else all rows)."""
    wanted = (position or "").strip()
    exact = [link for link in links if wanted and (link.track_position or "").strip() == wanted]
    candidates = exact or links

    for link in candidates:
        if link.provider == PlaybackProvider.BANDCAMP and link.bandcamp_embed_src:
            return ResolvedMedia.bandcamp(link.bandcamp_embed_src, bandcamp_url=link.bandcamp_url)
    for link in candidates:
        if link.provider == PlaybackProvider.YOUTUBE and link.youtube_id:
            return ResolvedMedia.youtube(link.youtube_id)
    return None


class SavedMediaResolver:
    """Looks up saved provider links per release (memoized, in-flight deduplicated).

    Hey future me - bandcamp wins over youtube because it is licensed audio straight from the
    label/artist. Repository failures already come back as [] (see repositories.py) and an empty
    result is NOT memoized, so a table that appears later is picked up on the next lookup.
    """

    def __init__(self, repository: ITrackMediaRepository | None, username: str = "") -> None:
        self._repository = repository
        self._username = username.strip()
        self._cache: InMemoryCache[int, list[SavedMediaLink]] = InMemoryCache(default_ttl=None)
        self._pending: InFlight[int, list[SavedMediaLink]] = InFlight()

    async def links_for_release(self, release_id: int) -> list[SavedMediaLink]:
        cached = await self._cache.get(release_id)
        if cached is not None:
            return cached
        if self._repository is None or not self._username:
            return []
        repository = self._repository
        return await self._pending.run(release_id, lambda: self._load(repository, release_id))

    async def _load(
        self, repository: ITrackMediaRepository, release_id: int
    ) -> list[SavedMediaLink]:
        links = await repository.get_for_release(self._username, release_id)
        if links:
            await self._cache.set(release_id, links)
        return links

    async def resolve(self, track: Track) -> ResolvedMedia | None:
        if not track.discogs_release_id:
            return None
        links = await self.links_for_release(track.discogs_release_id)
        return select_saved_media(links, track.discogs_track_position)

    async def remember(self, track: Track, media: ResolvedMedia) -> None:
        """Persist a working provider link for the track's release/position."""
        if self._repository is None or not self._username or not track.discogs_release_id:
            return
        link = SavedMediaLink(
            provider=media.provider,
            youtube_id=media.youtube_id,
            bandcamp_embed_src=media.bandcamp_embed_src,
            bandcamp_url=media.bandcamp_url,
            track_position=track.discogs_track_position,
        )
        await self._repository.upsert(self._username, track.discogs_release_id, [link])
        await self._cache.delete(track.discogs_release_id)

    async def clear(self) -> None:
        await self._cache.clear()
        self._pending.clear()
