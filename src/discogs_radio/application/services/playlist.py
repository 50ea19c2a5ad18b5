"""Playlist ordering and reconciliation.

Pure functions, no I/O. The playback session owns the list and calls these whenever the store
or the filters change.
"""

import random
from collections.abc import Iterable

from discogs_radio.application.services.matching import position_sort_key
from discogs_radio.domain.entities import Track, TrackSource


def sequential_sort_key(track: Track) -> tuple:
    """Album-flow order: artist, album, year, track position (numeric-aware), title."""
    return (
        track.artist.casefold(),
        track.album.casefold(),
        track.year or 0,
        position_sort_key(track.discogs_track_position),
        track.title.casefold(),
    )


def sequential_order(tracks: Iterable[Track]) -> list[Track]:
    return sorted(tracks, key=sequential_sort_key)


def shuffled(tracks: Iterable[Track], rng: random.Random) -> list[Track]:
    result = list(tracks)
    rng.shuffle(result)
    return result


def filter_tracks(
    tracks: Iterable[Track], active_sources: set[TrackSource], disliked_ids: set[str]
) -> list[Track]:
    """Tracks of the active sources that aren't disliked, in input order."""
    return [
        track
        for track in tracks
        if track.source in active_sources and track.id not in disliked_ids
    ]


def reconcile(
    previous: list[Track],
    filtered: list[Track],
    shuffle: bool,
    rng: random.Random,
) -> list[Track]:
    """Rebuild the playlist from a new filtered set.

    Existing entries get their latest data in place. When shuffled, the previous order is kept,
    removed tracks drop out and new ones are shuffled and appended. When sequential, the whole
    set is simply re-sorted.

    Hey future me - never rebuild a shuffled playlist from scratch here, the listener would
    hear a completely different "next" track every time the verifier patches a cover.
    """
    if not shuffle:
        return sequential_order(filtered)
    if not previous:
        return shuffled(filtered, rng)

    latest = {track.id: track for track in filtered}
    kept = [latest[track.id] for track in previous if track.id in latest]
    kept_ids = {track.id for track in kept}
    new_tracks = [track for track in filtered if track.id not in kept_ids]
    return kept + shuffled(new_tracks, rng)


def locate(playlist: list[Track], track_id: str | None) -> int:
    """Index of track_id in playlist, 0 when it is gone (or -1 for an empty playlist)."""
    if not playlist:
        return -1
    if track_id is None:
        return 0
    for idx, track in enumerate(playlist):
        if track.id == track_id:
            return idx
    return 0


def upcoming(playlist: list[Track], current_index: int, count: int) -> list[Track]:
    """The next ``count`` tracks after current_index, wrapping, never the current one."""
    if not playlist or count <= 0:
        return []
    size = len(playlist)
    steps = min(count, size - 1)
    return [playlist[(current_index + offset) % size] for offset in range(1, steps + 1)]
