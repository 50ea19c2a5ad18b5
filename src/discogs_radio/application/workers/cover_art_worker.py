"""Cover Art Worker - scrapes missing release covers one release at a time.

Hey future me - Discogs rate-limits the public endpoint hard, so this walks the tracks strictly
sequentially with a fixed pause between requests. The first track is done right away so the
screen shows a real cover as early as possible. Cached covers never reach this worker:
CoverArtService.batch_load fills them in one query before scraping starts.
"""

import asyncio
import logging
from typing import Any

from discogs_radio.application.services.resolvers.cover_art import (
    CoverArtService,
    needs_cover,
)
from discogs_radio.application.services.track_store import TrackStore
from discogs_radio.domain.entities import Track

logger = logging.getLogger(__name__)


class CoverArtWorker:
    """Scrapes covers for tracks still showing the placeholder."""

    def __init__(
        self,
        store: TrackStore,
        cover_art: CoverArtService,
        request_delay: float = 1.0,
    ) -> None:
        self._store = store
        self._cover_art = cover_art
        self._request_delay = request_delay
        self._running = False
        self._stats: dict[str, Any] = {
            "completed": 0,
            "total": 0,
            "found": 0,
            "current_track": None,
        }

    @property
    def is_scraping(self) -> bool:
        return self._running

    async def load_cached(self, tracks: list[Track] | None = None) -> int:
        """Apply covers already in the cache table (one query)."""
        candidates = tracks if tracks is not None else self._store.snapshot()
        return await self._cover_art.batch_load(candidates, self._apply_cover)

    def _apply_cover(self, track_id: str, cover_url: str) -> None:
        latest = self._store.get(track_id)
        # Someone else may have found a better cover while we were waiting
        if latest is not None and latest.has_placeholder_cover:
            self._store.patch(track_id, cover_url=cover_url)

    async def scrape(self, tracks: list[Track] | None = None, start_from_first: bool = True) -> int:
        """Fetch covers for every track that needs one.

        Returns:
            Number of covers found
        """
        if self._running:
            logger.info("Cover art scraping already in progress")
            return 0

        candidates = tracks if tracks is not None else self._store.snapshot()
        pending = [track for track in candidates if needs_cover(track)]
        if not pending:
            logger.debug("No tracks need cover art scraping")
            return 0

        self._running = True
        self._stats.update(completed=0, total=len(pending), found=0, current_track=None)
        logger.info("Starting cover art scraping for %d tracks", len(pending))
        try:
            for idx, track in enumerate(pending):
                if not self._running:
                    logger.info("Cover art scraping stopped after %d tracks", idx)
                    break
                if idx > 0 or not start_from_first:
                    await asyncio.sleep(self._request_delay)
                    if not self._running:
                        break
                await self._scrape_one(track)
                self._stats["completed"] = idx + 1
        finally:
            self._running = False
            self._stats["current_track"] = None

        logger.info(
            "Cover art scraping completed: %d/%d covers found",
            self._stats["found"],
            len(pending),
        )
        return self._stats["found"]

    async def _scrape_one(self, track: Track) -> None:
        latest = self._store.get(track.id) or track
        if not needs_cover(latest) or latest.discogs_release_id is None:
            return
        self._stats["current_track"] = latest.title
        cover_url = await self._cover_art.fetch_cover(latest.discogs_release_id)
        if cover_url:
            self._apply_cover(latest.id, cover_url)
            self._stats["found"] += 1

    def stop(self) -> None:
        """Stop after the request currently in flight."""
        self._running = False

    def get_stats(self) -> dict[str, Any]:
        return {**self._stats, "running": self._running}
