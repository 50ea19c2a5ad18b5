"""Background Verifier Worker - resolves tracks one at a time while music plays.

Hey future me - this is NOT a one-shot pass over the collection. It's a loop that keeps picking
the single most useful track to verify next, resolves it, waits a short cool-down and picks
again. "Verified" here means the track has BOTH a youtube id and a real cover. A track that
already plays but still shows the placeholder gets its release cover from the cover art service,
the resolver returns stored media without looking at covers.

Priority for the next track:

1. the current track, if unverified
2. the next three tracks in playlist order
3. anything else that is unverified and not non_working, scanning from current+4 with wrap
4. non_working tracks, once per SWEEP

A processed track is marked verified for the rest of the sweep. When a scan finds nothing, the
sweep ends and the markers of non_working tracks are dropped so they get one more attempt in
the next sweep. This keeps flaky failures from starving forever without retrying them on
every tick. On large collections a sweep is long, set retry_non_working_per_sweep=False to
disable the retry entirely.

Exactly one track is in flight at a time. Upstream search is quota-limited and this worker
must never be the reason the foreground player runs out of quota.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from discogs_radio.application.services.media_resolution import (
    MediaResolutionService,
    media_fields,
)
from discogs_radio.application.services.resolvers.cover_art import CoverArtService
from discogs_radio.application.services.resolvers.youtube_search import YouTubeSearchResolver
from discogs_radio.application.services.track_store import TrackStore
from discogs_radio.domain.entities import Track, WorkingStatus, is_placeholder_cover

logger = logging.getLogger(__name__)

# Returns (playlist in play order, current track id)
QueueProvider = Callable[[], tuple[list[Track], str | None]]


class BackgroundVerifierWorker:
    """Continuously verifies tracks in priority order, one at a time."""

    def __init__(
        self,
        store: TrackStore,
        resolver: MediaResolutionService,
        youtube_search: YouTubeSearchResolver | None = None,
        queue_provider: QueueProvider | None = None,
        cover_art: CoverArtService | None = None,
        cooldown_seconds: float = 2.0,
        poll_interval_seconds: float = 3.0,
        lookahead: int = 3,
        retry_non_working_per_sweep: bool = True,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._youtube_search = youtube_search
        self._queue_provider = queue_provider
        self._cover_art = cover_art
        self._cooldown_seconds = cooldown_seconds
        self._poll_interval_seconds = poll_interval_seconds
        self._lookahead = lookahead
        self._retry_non_working = retry_non_working_per_sweep

        self._running = False
        self._processing = False
        self._wake = asyncio.Event()
        self._verified: set[str] = set()
        self._processed_this_sweep = 0
        self._stats: dict[str, Any] = {
            "processed": 0,
            "working": 0,
            "non_working": 0,
            "errors": 0,
            "sweeps": 0,
            "last_track_id": None,
        }

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def verified_ids(self) -> set[str]:
        return set(self._verified)

    async def start(self) -> None:
        """Run until stop() is called."""
        self._running = True
        logger.info(
            "BackgroundVerifierWorker started (cooldown=%ss, poll=%ss)",
            self._cooldown_seconds,
            self._poll_interval_seconds,
        )
        while self._running:
            delay = self._poll_interval_seconds
            try:
                if await self.run_once():
                    delay = self._cooldown_seconds
            except Exception as e:
                self._stats["errors"] += 1
                logger.exception("BackgroundVerifierWorker error: %s", e)
            await self._sleep(delay)
        logger.info("BackgroundVerifierWorker stopped")

    def stop(self) -> None:
        """Signal the worker to stop."""
        self._running = False
        self._wake.set()

    def trigger_immediate(self) -> None:
        """Skip the current wait (e.g. right after a CSV import)."""
        self._wake.set()

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=seconds)
        except TimeoutError:
            pass
        self._wake.clear()

    async def run_once(self) -> bool:
        """Verify the next track, if any. Returns True when a track was processed."""
        if self._processing:
            return False
        track = self.next_track_to_verify()
        if track is None:
            return False
        self._processing = True
        try:
            await self._verify(track)
        finally:
            self._verified.add(track.id)
            self._processed_this_sweep += 1
            self._processing = False
        return True

    # =========================================================================
    # PRIORITY SELECTION
    # =========================================================================

    def _needs_work(self, track: Track) -> bool:
        if track.id in self._verified:
            return False
        if track.needs_verification():
            return True
        # Already complete, nothing to do this sweep
        self._verified.add(track.id)
        return False

    def _ordered_tracks(self) -> tuple[list[Track], int]:
        """Playlist order first, then store tracks outside the playlist; plus current index."""
        stored = self._store.snapshot()
        playlist: list[Track] = []
        current_id: str | None = None
        if self._queue_provider is not None:
            playlist, current_id = self._queue_provider()

        latest = {track.id: track for track in stored}
        ordered = [latest[track.id] for track in playlist if track.id in latest]
        seen = {track.id for track in ordered}
        ordered.extend(track for track in stored if track.id not in seen)

        current_index = -1
        if current_id is not None:
            for idx, track in enumerate(ordered):
                if track.id == current_id:
                    current_index = idx
                    break
        return ordered, current_index

    def next_track_to_verify(self) -> Track | None:
        ordered, current_index = self._ordered_tracks()
        if not ordered:
            return None
        total = len(ordered)

        if current_index >= 0 and self._needs_work(ordered[current_index]):
            return ordered[current_index]

        base = max(current_index, 0)
        for offset in range(1, self._lookahead + 1):
            track = ordered[(base + offset) % total]
            if self._needs_work(track):
                return track

        for offset in range(total):
            track = ordered[(base + self._lookahead + 1 + offset) % total]
            if track.working_status == WorkingStatus.NON_WORKING:
                continue
            if self._needs_work(track):
                return track

        if self._retry_non_working:
            for offset in range(total):
                track = ordered[(base + self._lookahead + 1 + offset) % total]
                if track.working_status == WorkingStatus.NON_WORKING and self._needs_work(track):
                    return track

        self._end_sweep(ordered)
        return None

    def _end_sweep(self, tracks: list[Track]) -> None:
        if self._processed_this_sweep == 0:
            return
        self._stats["sweeps"] += 1
        self._processed_this_sweep = 0
        if self._retry_non_working:
            retry = {t.id for t in tracks if t.working_status == WorkingStatus.NON_WORKING}
            self._verified -= retry
            logger.info(
                "Verifier sweep %d complete, %d non-working tracks re-enter the queue",
                self._stats["sweeps"],
                len(retry),
            )

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    async def _verify(self, track: Track) -> None:
        logger.debug("Verifying %s - %s", track.artist, track.title)
        self._stats["last_track_id"] = track.id

        media = await self._resolver.resolve_media_for_track(track)
        changes = media_fields(track, media)

        if not media.is_playable and self._youtube_search is not None:
            if not self._youtube_search.quota_exceeded:
                video_id = await self._youtube_search.search(track)
                if video_id:
                    changes["youtube_id"] = video_id
                    changes["working_status"] = WorkingStatus.WORKING

        if (
            self._cover_art is not None
            and track.discogs_release_id
            and track.has_placeholder_cover
            and is_placeholder_cover(changes.get("cover_url"))
        ):
            changes["cover_url"] = await self._cover_art.fetch_cover(track.discogs_release_id)

        if changes.get("working_status") != WorkingStatus.WORKING:
            changes["working_status"] = WorkingStatus.NON_WORKING

        self._stats["processed"] += 1
        status = changes["working_status"]
        self._stats["working" if status == WorkingStatus.WORKING else "non_working"] += 1

        # Re-read: the foreground player may have written to this track meanwhile
        latest = self._store.get(track.id)
        if latest is None:
            return
        effective = {
            key: value
            for key, value in changes.items()
            if value is not None and getattr(latest, key) != value
        }
        if latest.cover_url and not latest.has_placeholder_cover:
            effective.pop("cover_url", None)
        if effective:
            self._store.patch(track.id, **effective)

    def get_stats(self) -> dict[str, Any]:
        store_ids = {track.id for track in self._store}
        return {
            **self._stats,
            "running": self._running,
            "processing": self._processing,
            "verified": len(self._verified & store_ids),
            "total": len(store_ids),
        }


def create_background_verifier_worker(
    store: TrackStore,
    resolver: MediaResolutionService,
    youtube_search: YouTubeSearchResolver | None = None,
    queue_provider: QueueProvider | None = None,
    cover_art: CoverArtService | None = None,
    cooldown_seconds: float = 2.0,
    poll_interval_seconds: float = 3.0,
    lookahead: int = 3,
    retry_non_working_per_sweep: bool = True,
) -> BackgroundVerifierWorker:
    """Create a BackgroundVerifierWorker with default settings.

    Returns:
        Configured BackgroundVerifierWorker instance
    """
    return BackgroundVerifierWorker(
        store=store,
        resolver=resolver,
        youtube_search=youtube_search,
        queue_provider=queue_provider,
        cover_art=cover_art,
        cooldown_seconds=cooldown_seconds,
        poll_interval_seconds=poll_interval_seconds,
        lookahead=lookahead,
        retry_non_working_per_sweep=retry_non_working_per_sweep,
    )
