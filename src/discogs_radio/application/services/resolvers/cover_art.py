"""Cover-art resolver - release cover from the cache table, else the public Discogs endpoint."""

import logging
from collections.abc import Callable

from discogs_radio.domain.entities import CoverArtRecord, Track
from discogs_radio.domain.exceptions import ExternalServiceError
from discogs_radio.domain.ports import ICoverArtRepository, ICoverArtSource

logger = logging.getLogger(__name__)


def needs_cover(track: Track) -> bool:
    """Tracks with a release id whose cover is still missing or the placeholder."""
    return bool(track.discogs_release_id) and track.has_placeholder_cover


class CoverArtService:
    """Looks up and caches release cover art.

    Hey future me - cover art is immutable per release, so a row in the cover art table is final
    and never refreshed. The repository already swallows "table missing" style failures and
    returns nothing, which makes us fall through to the public endpoint.
    """

    def __init__(
        self, repository: ICoverArtRepository | None, source: ICoverArtSource | None
    ) -> None:
        self._repository = repository
        self._source = source

    async def fetch_cover(self, release_id: int) -> str | None:
        """Cover URL for a release, writing fresh lookups back to the cache table."""
        if self._repository is not None:
            cached = await self._repository.get(release_id)
            if cached is not None and cached.best_url:
                return cached.best_url

        if self._source is None:
            return None
        try:
            record = await self._source.fetch_cover(release_id)
        except ExternalServiceError as e:
            logger.warning("Cover art lookup failed for release %s: %s", release_id, e.message)
            return None
        if record is None or not record.best_url:
            return None

        if self._repository is not None:
            await self._repository.upsert(
                CoverArtRecord(
                    release_id=release_id,
                    cover_url=record.best_url,
                    thumb_url=record.thumb_url,
                )
            )
        logger.debug("Cover art fetched and stored for release %s", release_id)
        return record.best_url

    async def batch_load(
        self, tracks: list[Track], on_cover: Callable[[str, str], None]
    ) -> int:
        """Fill covers for many tracks with one cache-table query.

        Args:
            tracks: candidate tracks, only those needing a cover are looked up
            on_cover: called with (track_id, cover_url) for each hit

        Returns:
            Number of tracks updated
        """
        if self._repository is None:
            return 0
        wanted = [track for track in tracks if needs_cover(track)]
        release_ids = sorted({track.discogs_release_id for track in wanted if track.discogs_release_id})
        if not release_ids:
            return 0

        records = await self._repository.get_many(release_ids)
        updated = 0
        for track in wanted:
            record = records.get(track.discogs_release_id or 0)
            if record is not None and record.best_url:
                on_cover(track.id, record.best_url)
                updated += 1
        if updated:
            logger.info("Loaded %d cover arts from the cache table", updated)
        return updated
