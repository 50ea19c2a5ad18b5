"""Radio Session - the small service surface the API (or any UI) binds to.

Hey future me - this is glue, not logic. It owns one TrackStore and wires every collaborator to
it: the playback session rebuilds from it, the track-cache service and the CSV list persist
from it, the verifier and the cover worker write into it. Everything that changes a track goes
through store.patch/merge, so the listeners below see every change exactly once.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from discogs_radio.application.cache.snapshot_cache import TrackSnapshotCache
from discogs_radio.application.services.csv_import import CSVCollectionService
from discogs_radio.application.services.discogs_library import DiscogsLibraryService
from discogs_radio.application.services.media_resolution import (
    MediaResolutionService,
    media_fields,
)
from discogs_radio.application.services.playback_session import PlaybackSession
from discogs_radio.application.services.resolvers.direct_audio import DirectAudioResolver
from discogs_radio.application.services.resolvers.release_fetcher import (
    CachedReleaseFetcher,
)
from discogs_radio.application.services.resolvers.saved_media import SavedMediaResolver
from discogs_radio.application.services.resolvers.youtube_search import YouTubeSearchResolver
from discogs_radio.application.services.track_cache_service import TrackCacheService
from discogs_radio.application.services.track_store import StoreChange, TrackStore
from discogs_radio.application.workers.background_verifier import BackgroundVerifierWorker
from discogs_radio.application.workers.cover_art_worker import CoverArtWorker
from discogs_radio.domain.entities import (
    DirectAudio,
    ResolvedMedia,
    Track,
    TrackSource,
    WorkingStatus,
)
from discogs_radio.domain.exceptions import EntityNotFoundException, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of a CSV import."""

    source: TrackSource
    imported: int
    covers_from_cache: int
    first_track_id: str | None
    first_track_working: bool | None


class RadioSession:
    """Facade over store, playback, resolution and persistence."""

    def __init__(
        self,
        store: TrackStore,
        playback: PlaybackSession,
        resolver: MediaResolutionService,
        youtube_search: YouTubeSearchResolver,
        saved_media: SavedMediaResolver,
        release_fetcher: CachedReleaseFetcher,
        direct_audio: DirectAudioResolver,
        csv_collection: CSVCollectionService,
        track_cache: TrackCacheService,
        snapshot_cache: TrackSnapshotCache,
        cover_worker: CoverArtWorker,
        verifier: BackgroundVerifierWorker,
        library: DiscogsLibraryService | None = None,
        username: str = "",
        first_track_timeout: float = 3.0,
    ) -> None:
        self.store = store
        self.playback = playback
        self.resolver = resolver
        self.youtube_search = youtube_search
        self.saved_media = saved_media
        self.release_fetcher = release_fetcher
        self.direct_audio = direct_audio
        self.csv_collection = csv_collection
        self.track_cache = track_cache
        self.snapshot_cache = snapshot_cache
        self.cover_worker = cover_worker
        self.verifier = verifier
        self.library = library
        self.username = username.strip()
        self._first_track_timeout = first_track_timeout
        self._background: set[asyncio.Task[Any]] = set()
        self._unsubscribe = store.subscribe(self._persist_changes)

    def _spawn(self, coro: Any) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _persist_changes(self, change: StoreChange, ids: list[str]) -> None:
        if change not in (StoreChange.MERGED, StoreChange.UPDATED):
            return
        tracks = [track for track in (self.store.get(i) for i in ids) if track is not None]
        if not tracks:
            return
        self.track_cache.schedule_upsert(tracks)
        if change == StoreChange.UPDATED:
            for track in tracks:
                if track.id.startswith("csv-"):
                    self.csv_collection.update_track(track)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Restore CSV lists and the Discogs snapshot, then build the playlist."""
        restored = self.csv_collection.all_tracks
        if self.username:
            snapshot = self.snapshot_cache.load(self.username)
            if snapshot is not None:
                restored.extend(snapshot.discogs_tracks)
        if restored:
            self.store.merge(await self.track_cache.hydrate(restored))
            logger.info("Restored %d tracks from local storage", len(restored))
        await self.playback.start()

    async def close(self) -> None:
        self._unsubscribe()
        self.cover_worker.stop()
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self.playback.close()
        self.save_snapshot()
        await self.track_cache.close()

    # =========================================================================
    # LIBRARY
    # =========================================================================

    async def load_discogs_library(self, max_per_source: int = 100) -> int:
        """Fetch collection + wantlist from Discogs and merge them into the store.

        Raises:
            ValidationError: no Discogs connection is configured
        """
        if self.library is None or not self.username:
            raise ValidationError("Discogs is not connected")
        tracks = await self.library.fetch_all_tracks(max_per_source=max_per_source)
        if not tracks:
            return 0
        # Keep media already resolved this session
        known = {track.id: track.youtube_id for track in self.store}
        tracks = [
            track if track.youtube_id else track.with_changes(youtube_id=known.get(track.id, ""))
            for track in tracks
        ]
        tracks = await self.track_cache.hydrate(tracks)
        self.store.merge(tracks)
        self.save_snapshot()
        self.verifier.trigger_immediate()
        return len(tracks)

    def save_snapshot(self) -> None:
        if not self.username:
            return
        discogs_tracks = [track for track in self.store if not track.id.startswith("csv-")]
        if discogs_tracks:
            self.snapshot_cache.save(self.username, discogs_tracks)

    async def import_csv(self, content: str, source: TrackSource | str) -> ImportResult:
        """Import a Discogs CSV export and warm it up.

        Flow: replace the stored list, quick search for the first track (bounded wait),
        persist, apply cached covers, start the cover scrape, wake the verifier.

        Raises:
            CSVImportError: the file is empty, lacks Artist/Title or has no valid rows
        """
        source = TrackSource(source)
        self.playback.pause()
        tracks = self.csv_collection.import_content(content, source)
        self.store.clear(source=source, csv_only=True)
        self.store.merge(await self.track_cache.hydrate(tracks, source))
        logger.info("Imported %d %s tracks from CSV", len(tracks), source.value)

        first = tracks[0]
        first_working = await self._quick_resolve_first(first)
        covers = await self.cover_worker.load_cached(tracks)
        self._spawn(self.cover_worker.scrape(tracks, start_from_first=True))
        self.verifier.trigger_immediate()
        return ImportResult(
            source=source,
            imported=len(tracks),
            covers_from_cache=covers,
            first_track_id=first.id,
            first_track_working=first_working,
        )

    async def _quick_resolve_first(self, track: Track) -> bool | None:
        latest = self.store.get(track.id) or track
        if latest.youtube_id:
            return True
        try:
            video_id = await asyncio.wait_for(
                self.youtube_search.search(latest), timeout=self._first_track_timeout
            )
        except TimeoutError:
            video_id = ""
        if video_id:
            self.store.patch(track.id, youtube_id=video_id, working_status=WorkingStatus.WORKING)
            return True
        # A miss may be a slow or quota-limited search, the verifier settles the status
        return False

    async def clear_library(self, source: TrackSource | str | None = None) -> int:
        """Drop CSV-imported tracks (all, or one source)."""
        source = TrackSource(source) if source is not None else None
        self.csv_collection.clear(source)
        removed = self.store.clear(source=source, csv_only=True)
        logger.info("Cleared %d CSV tracks", removed)
        return removed

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def _require_track(self, track_id: str) -> Track:
        track = self.store.get(track_id)
        if track is None:
            raise EntityNotFoundException("Track", track_id)
        return track

    async def resolve_track(
        self, track_id: str, prefer_different_from: str | None = None
    ) -> ResolvedMedia:
        """Resolve one track on demand and write the result through the store."""
        track = self._require_track(track_id)
        media = await self.resolver.resolve_media_for_track(
            track, prefer_different_from=prefer_different_from
        )
        latest = self.store.get(track_id) or track
        self.store.patch(track_id, **media_fields(latest, media))
        return media

    async def retry_track(self, track_id: str) -> bool:
        """Forced search for a non-working track (explicit user retry, ignores the quota flag)."""
        track = self._require_track(track_id)
        video_id = await self.youtube_search.search(track, force=True)
        if not video_id:
            return False
        self.store.patch(track_id, youtube_id=video_id, working_status=WorkingStatus.WORKING)
        return True

    async def direct_audio_for(self, track_id: str) -> DirectAudio | None:
        track = self._require_track(track_id)
        return await self.direct_audio.resolve(track.youtube_id)

    async def save_media_link(self, track_id: str, media: ResolvedMedia) -> None:
        """Remember a working provider link for the track's release."""
        track = self._require_track(track_id)
        if not media.is_playable:
            raise ValidationError("Only playable media can be saved")
        await self.saved_media.remember(track, media)
        self.store.patch(track_id, **media_fields(track, media))

    def search_url(self, track_id: str) -> str:
        return self.youtube_search.search_url(self._require_track(track_id))

    async def reset_caches(self) -> None:
        """Fresh session: forget search results, the quota flag and memoized lookups."""
        await self.youtube_search.clear()
        await self.release_fetcher.clear()
        await self.saved_media.clear()
        logger.info("Resolution caches cleared")

    def get_stats(self) -> dict[str, Any]:
        return {
            "tracks": len(self.store),
            "counts": self.playback.track_counts(),
            "search_cache": self.youtube_search.cache.get_stats(),
            "search_network_calls": self.youtube_search.network_calls,
            "quota_exceeded": self.youtube_search.quota_exceeded,
            "pending_cache_writes": self.track_cache.pending_count,
        }
