"""Media Resolution Orchestrator.

Hey future me - this is the ONE entry point for "make this track playable". Priority is strict
and sequential, never raced, so the cheap cached paths always get their chance to short-circuit
before the expensive quota-limited search runs:

1. the track already has a provider + matching payload -> return it, zero I/O
2. saved media links for the release (bandcamp before youtube)
3. videos linked on the Discogs release, scored against the title
4. YouTube search (skipped while the quota flag is up, alternates included)

It NEVER raises. Exhaustion is ResolvedMedia.none(), possibly still carrying a cover URL found
on the way. Callers decide whether that means retry, skip or non_working.
"""

import asyncio
import logging
from typing import Any

from discogs_radio.application.cache.base_cache import InFlight
from discogs_radio.application.services.resolvers.discogs_videos import DiscogsVideoResolver
from discogs_radio.application.services.resolvers.saved_media import SavedMediaResolver
from discogs_radio.application.services.resolvers.youtube_search import YouTubeSearchResolver
from discogs_radio.domain.entities import PlaybackProvider, ResolvedMedia, Track, WorkingStatus

logger = logging.getLogger(__name__)


def media_fields(track: Track, media: ResolvedMedia) -> dict[str, Any]:
    """Store patch for a resolution result (None values are skipped by TrackStore.patch).

    A cover is only taken when the track still shows the placeholder. Playable media also sets
    the playback pointer and marks the track working; NONE leaves status to the caller.
    """
    changes: dict[str, Any] = {
        "cover_url": media.cover_url if track.has_placeholder_cover else None,
        "cover_urls": list(media.cover_urls) or None,
        "youtube_candidates": list(media.youtube_candidates) or None,
    }
    if media.provider == PlaybackProvider.YOUTUBE:
        changes["youtube_id"] = media.youtube_id
    elif media.provider == PlaybackProvider.BANDCAMP:
        changes["bandcamp_embed_src"] = media.bandcamp_embed_src
        changes["bandcamp_url"] = media.bandcamp_url
    if media.is_playable:
        changes["playback_provider"] = media.provider
        changes["working_status"] = WorkingStatus.WORKING
    return changes


class MediaResolutionService:
    """Resolves tracks to playable media through the provider chain."""

    def __init__(
        self,
        saved_media: SavedMediaResolver,
        discogs_videos: DiscogsVideoResolver,
        youtube_search: YouTubeSearchResolver | None = None,
        alternate_max_results: int = 8,
    ) -> None:
        self._saved_media = saved_media
        self._discogs_videos = discogs_videos
        self._youtube_search = youtube_search
        self._alternate_max_results = alternate_max_results
        self._pending: InFlight[str, ResolvedMedia] = InFlight()

    @property
    def search_rate_limited(self) -> bool:
        return self._youtube_search is not None and self._youtube_search.quota_exceeded

    async def resolve_media_for_track(
        self,
        track: Track,
        prefer_different_from: str | None = None,
        use_search: bool = True,
    ) -> ResolvedMedia:
        """Resolve a track, sharing one in-flight resolution per track id.

        Args:
            track: the track to resolve
            prefer_different_from: youtube id that just failed, any other candidate wins
            use_search: allow the YouTube search step
        """
        avoid = (prefer_different_from or "").strip() or None
        if avoid is None:
            existing = track.active_media()
            if existing is not None:
                return existing
            # Cached-only lookups (prefetch) must not hand their result to a caller that
            # expects the full chain, so they get their own key
            key = track.id if use_search else f"{track.id}#cached"
            return await self._pending.run(
                key, lambda: self._resolve_safely(track, None, use_search)
            )
        # Alternate lookups are rare and specific to one failure, no sharing
        return await self._resolve_safely(track, avoid, use_search)

    async def _resolve_safely(
        self, track: Track, avoid: str | None, use_search: bool
    ) -> ResolvedMedia:
        try:
            return await self._resolve(track, avoid, use_search)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Resolution failed for track %s: %s", track.id, e)
            return ResolvedMedia.none()

    async def _resolve(self, track: Track, avoid: str | None, use_search: bool) -> ResolvedMedia:
        saved = await self._saved_media.resolve(track)
        if saved is not None and (avoid is None or saved.youtube_id != avoid):
            logger.debug("Track %s resolved from saved media (%s)", track.id, saved.provider.value)
            return saved

        cover_url: str | None = None
        candidates: tuple[str, ...] = ()
        from_release = await self._discogs_videos.resolve(track, prefer_different_from=avoid)
        if from_release is not None:
            if from_release.is_playable:
                logger.debug("Track %s resolved from Discogs release videos", track.id)
                return from_release
            cover_url = from_release.cover_url
            candidates = from_release.youtube_candidates

        if use_search and self._youtube_search is not None:
            if avoid is None:
                video_id = await self._youtube_search.search(track)
            elif self.search_rate_limited:
                # Forcing only skips the cache holding the failed id, never the quota flag
                video_id = ""
            else:
                video_id = await self._youtube_search.search(
                    track, force=True, max_results=self._alternate_max_results, avoid=avoid
                )
            if video_id and video_id != avoid:
                logger.debug("Track %s resolved via YouTube search", track.id)
                return ResolvedMedia.youtube(
                    video_id, cover_url=cover_url, youtube_candidates=candidates
                )

        return ResolvedMedia.none(cover_url=cover_url, youtube_candidates=candidates)

    async def prefetch_for_tracks(self, tracks: list[Track]) -> None:
        """Warm saved-media and release caches for every distinct release in tracks."""
        release_ids = {track.discogs_release_id for track in tracks if track.discogs_release_id}
        if not release_ids:
            return
        lookups = []
        for release_id in release_ids:
            lookups.append(self._saved_media.links_for_release(release_id))
            lookups.append(self._discogs_videos.release(release_id))
        results = await asyncio.gather(*lookups, return_exceptions=True)
        failures = [result for result in results if isinstance(result, Exception)]
        if failures:
            logger.debug("Prefetch finished with %d failed lookups", len(failures))
