"""Track metadata cache - per-owner rows of covers, videos and working status.

Hey future me - this is what makes a second session start warm: every store change is pushed
(debounced) into the track_cache table, and on load the rows are folded back onto freshly
built tracks. The owner key is the Discogs username when connected; CSV-only users get a random
``csv-{uuid}`` key persisted to a small file so it survives restarts.
"""

import asyncio
import logging
import uuid
from pathlib import Path

from discogs_radio.domain.entities import (
    MAX_COVER_URLS,
    MAX_YOUTUBE_CANDIDATES,
    Track,
    TrackCacheEntry,
    TrackSource,
    WorkingStatus,
    is_placeholder_cover,
    prioritized,
)
from discogs_radio.domain.ports import ITrackCacheRepository

logger = logging.getLogger(__name__)


def resolve_owner_key(username: str | None, key_path: Path) -> str:
    """Username when given, else the persisted (or newly created) CSV owner key."""
    if username and username.strip():
        return username.strip()
    try:
        stored = key_path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        stored = ""
    if stored:
        return stored
    key = f"csv-{uuid.uuid4()}"
    key_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.write_text(key, encoding="utf-8")
    logger.info("Created CSV owner key %s", key)
    return key


def infer_working_status(track: Track) -> WorkingStatus:
    # A pending track that already carries a video id was resolved before status tracking
    if track.working_status == WorkingStatus.PENDING and track.youtube_id:
        return WorkingStatus.WORKING
    return track.working_status


def to_entry(owner_key: str, track: Track) -> TrackCacheEntry:
    """Build the cache row for a track, primary cover / video first."""
    covers = track.cover_urls
    if track.cover_url and not is_placeholder_cover(track.cover_url):
        covers = [track.cover_url, *covers]
    videos = [track.youtube_id, *track.youtube_candidates]
    return TrackCacheEntry(
        owner_key=owner_key,
        source=track.source,
        track_id=track.id,
        artist=track.artist,
        title=track.title,
        release_id=track.discogs_release_id,
        track_position=track.discogs_track_position,
        album=track.album or None,
        genre=track.genre or None,
        label=track.label or None,
        year=track.year or None,
        country=track.country,
        covers=prioritized(covers, MAX_COVER_URLS),
        videos=prioritized(videos, MAX_YOUTUBE_CANDIDATES),
        working_status=infer_working_status(track),
    )


def apply_cached_metadata(tracks: list[Track], entries: list[TrackCacheEntry]) -> list[Track]:
    """Fold cached rows onto tracks. A real (non-placeholder) cover on the track wins."""
    if not tracks or not entries:
        return tracks
    by_id = {entry.track_id: entry for entry in entries}
    merged: list[Track] = []
    for track in tracks:
        entry = by_id.get(track.id)
        if entry is None:
            merged.append(track)
            continue
        cover_url = track.cover_url
        if track.has_placeholder_cover and entry.covers:
            cover_url = entry.covers[0]
        merged.append(
            track.with_changes(
                country=track.country or entry.country,
                cover_url=cover_url,
                cover_urls=entry.covers or track.cover_urls,
                youtube_id=track.youtube_id or (entry.videos[0] if entry.videos else ""),
                youtube_candidates=entry.videos or track.youtube_candidates,
                working_status=entry.working_status,
            )
        )
    return merged


class TrackCacheService:
    """Loads cached rows and pushes track changes back with a short debounce."""

    def __init__(
        self,
        repository: ITrackCacheRepository | None,
        owner_key: str,
        debounce_seconds: float = 0.5,
    ) -> None:
        self._repository = repository
        self._owner_key = owner_key
        self._debounce_seconds = debounce_seconds
        self._pending: dict[str, Track] = {}
        self._flush_task: asyncio.Task[None] | None = None

    @property
    def owner_key(self) -> str:
        return self._owner_key

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def load(self, source: TrackSource | None = None) -> list[TrackCacheEntry]:
        if self._repository is None or not self._owner_key:
            return []
        return await self._repository.load(self._owner_key, source)

    async def hydrate(self, tracks: list[Track], source: TrackSource | None = None) -> list[Track]:
        """Load cached rows for the owner and apply them to tracks."""
        entries = await self.load(source)
        if entries:
            logger.debug("Applying %d cached track rows", len(entries))
        return apply_cached_metadata(tracks, entries)

    def schedule_upsert(self, tracks: list[Track]) -> None:
        """Queue tracks for persistence; rapid successive changes collapse into one write."""
        if self._repository is None or not tracks:
            return
        for track in tracks:
            self._pending[track.id] = track
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.get_running_loop().create_task(self._flush_later())

    async def _flush_later(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        await self.flush()

    async def flush(self) -> int:
        """Write all queued tracks now. Returns the number of rows sent."""
        if self._repository is None or not self._pending:
            return 0
        batch = list(self._pending.values())
        self._pending.clear()
        await self._repository.upsert([to_entry(self._owner_key, track) for track in batch])
        logger.debug("Persisted %d track cache rows for %s", len(batch), self._owner_key)
        return len(batch)

    async def close(self) -> None:
        """Cancel the debounce timer and flush what is left."""
        if self._flush_task is not None and not self._flush_task.done():
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
        await self.flush()
