"""Discogs-embedded video resolver."""

import logging

from discogs_radio.application.services.matching import (
    extract_video_candidates,
    pick_candidate,
    rank_candidates,
    release_cover_url,
)
from discogs_radio.application.services.resolvers.release_fetcher import (
    CachedReleaseFetcher,
)
from discogs_radio.domain.entities import (
    MAX_YOUTUBE_CANDIDATES,
    ResolvedMedia,
    Track,
)
from discogs_radio.domain.exceptions import AuthenticationError, ExternalServiceError

logger = logging.getLogger(__name__)


class DiscogsVideoResolver:
    """Matches a track to one of the YouTube videos linked on its Discogs release.

    Hey future me - Discogs releases list videos for the WHOLE release, not per track, so we
    score each video title against the track title/artist and take the best one. The release
    cover comes along for free and is returned even when no video fits.
    """

    def __init__(self, release_fetcher: CachedReleaseFetcher) -> None:
        self._release_fetcher = release_fetcher

    async def release(self, release_id: int) -> dict | None:
        """Raw (cached) release detail, errors propagate."""
        return await self._release_fetcher.get(release_id)

    async def resolve(
        self, track: Track, prefer_different_from: str | None = None
    ) -> ResolvedMedia | None:
        """Best matching video as youtube media, else NONE carrying the cover; None without a release."""
        if not track.discogs_release_id:
            return None
        try:
            release = await self._release_fetcher.get(track.discogs_release_id)
        except AuthenticationError as e:
            logger.warning("Cannot fetch release %s: %s", track.discogs_release_id, e.message)
            return None
        except ExternalServiceError as e:
            logger.warning(
                "Release %s fetch failed: %s", track.discogs_release_id, e.message
            )
            return None
        if release is None:
            return None

        cover_url = release_cover_url(release)
        ranked = rank_candidates(extract_video_candidates(release), track.artist, track.title)
        alternates = tuple(candidate.video_id for candidate in ranked[:MAX_YOUTUBE_CANDIDATES])
        best = pick_candidate(ranked, prefer_different_from)
        if best is None:
            return ResolvedMedia.none(cover_url=cover_url, youtube_candidates=alternates)
        return ResolvedMedia.youtube(
            best.video_id, cover_url=cover_url, youtube_candidates=alternates
        )
