"""Track Store - the single source of truth for tracks and their resolved media.

Hey future me - EVERY writer goes through here: verifier, foreground resolver, prefetcher,
cover-art loader, player-error handler, CSV import. Nobody keeps their own copy of a track and
writes it back later. If you need to change one field, use patch(), which reads the LATEST entry
at call time. update() with a Track you fetched before an await is how lost updates happen.

All mutation runs on the event loop thread, so there is no lock. Listeners are called
synchronously right after each mutation, so the change is visible to the very next read.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import fields
from enum import Enum
from typing import Any

from discogs_radio.domain.entities import Track, TrackSource
from discogs_radio.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


class StoreChange(str, Enum):
    """Kind of mutation reported to listeners."""

    MERGED = "merged"
    UPDATED = "updated"
    REMOVED = "removed"
    CLEARED = "cleared"


StoreListener = Callable[[StoreChange, list[str]], None]

_TRACK_FIELDS = {f.name for f in fields(Track)}
_IMMUTABLE_FIELDS = {"id", "source"}


class TrackStore:
    """Ordered, id-deduplicated union of collection, wantlist and CSV tracks."""

    def __init__(self, tracks: list[Track] | None = None) -> None:
        self._tracks: list[Track] = []
        self._listeners: list[StoreListener] = []
        self._version = 0
        if tracks:
            self.merge(tracks)

    @property
    def version(self) -> int:
        """Bumped on every mutation."""
        return self._version

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener, returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: StoreChange, ids: list[str]) -> None:
        self._version += 1
        for listener in list(self._listeners):
            try:
                listener(change, ids)
            except Exception as e:
                # One broken listener must not block the others
                logger.exception("TrackStore listener failed on %s: %s", change.value, e)

    def _position(self, track_id: str) -> int:
        for idx, track in enumerate(self._tracks):
            if track.id == track_id:
                return idx
        return -1

    def merge(self, new_tracks: list[Track]) -> int:
        """Replace tracks sharing an id, append the rest in input order.

        Returns:
            Number of newly appended tracks
        """
        if not new_tracks:
            return 0
        incoming: dict[str, Track] = {}
        for track in new_tracks:
            incoming[track.id] = track

        replaced: set[str] = set()
        for idx, existing in enumerate(self._tracks):
            replacement = incoming.get(existing.id)
            if replacement is not None:
                self._tracks[idx] = replacement
                replaced.add(existing.id)

        appended = 0
        for track_id, track in incoming.items():
            if track_id not in replaced:
                self._tracks.append(track)
                appended += 1

        self._notify(StoreChange.MERGED, list(incoming))
        return appended

    def update(self, track: Track) -> bool:
        """Replace a track by id. Never inserts.

        Raises:
            ValidationError: the update tries to change the track's source
        """
        idx = self._position(track.id)
        if idx < 0:
            logger.debug("Ignoring update for unknown track %s", track.id)
            return False
        current = self._tracks[idx]
        if current.source != track.source:
            raise ValidationError(
                f"Track source cannot change ({current.source.value} -> {track.source.value})"
            )
        self._tracks[idx] = track
        self._notify(StoreChange.UPDATED, [track.id])
        return True

    def patch(self, track_id: str, **changes: Any) -> Track | None:
        """Apply field changes to the latest stored version of a track.

        None values are ignored so callers can pass optional results straight through.

        Returns:
            The updated track, or None if the id is unknown
        """
        unknown = set(changes) - _TRACK_FIELDS
        if unknown:
            raise ValidationError(f"Unknown track fields: {', '.join(sorted(unknown))}")
        if set(changes) & _IMMUTABLE_FIELDS:
            raise ValidationError("Track id and source are immutable")

        idx = self._position(track_id)
        if idx < 0:
            return None
        effective = {key: value for key, value in changes.items() if value is not None}
        if not effective:
            return self._tracks[idx]
        updated = self._tracks[idx].with_changes(**effective)
        self._tracks[idx] = updated
        self._notify(StoreChange.UPDATED, [track_id])
        return updated

    def remove(self, track_id: str) -> bool:
        idx = self._position(track_id)
        if idx < 0:
            return False
        del self._tracks[idx]
        self._notify(StoreChange.REMOVED, [track_id])
        return True

    def clear(self, source: TrackSource | None = None, csv_only: bool = False) -> int:
        """Drop all tracks, optionally only those of one source and/or only CSV imports."""
        kept: list[Track] = []
        removed: list[str] = []
        for track in self._tracks:
            matches_source = source is None or track.source == source
            matches_origin = not csv_only or track.id.startswith("csv-")
            if matches_source and matches_origin:
                removed.append(track.id)
            else:
                kept.append(track)
        if removed:
            self._tracks = kept
            self._notify(StoreChange.CLEARED, removed)
        return len(removed)

    def get(self, track_id: str) -> Track | None:
        idx = self._position(track_id)
        return self._tracks[idx] if idx >= 0 else None

    def snapshot(self) -> list[Track]:
        """Current tracks in store order (a new list, the tracks themselves are shared)."""
        return list(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(list(self._tracks))

    def __contains__(self, track_id: object) -> bool:
        return isinstance(track_id, str) and self._position(track_id) >= 0
