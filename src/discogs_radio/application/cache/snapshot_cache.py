"""Per-device snapshot of a user's Discogs track list.

One JSON file per username holding ``{discogsTracks, playableTracks, updatedAt}``. A snapshot
older than the TTL (30 minutes by default) or one that fails to parse is deleted and treated as
absent, the caller then refetches from Discogs.
"""

import json
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

from discogs_radio.domain.entities import Track

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "discogs-tracks"


@dataclass
class TrackSnapshot:
    """A loaded snapshot."""

    discogs_tracks: list[Track]
    playable_tracks: list[Track]
    updated_at: float


def playable_subset(tracks: list[Track]) -> list[Track]:
    """Tracks that already carry a youtube id or bandcamp embed."""
    return [track for track in tracks if track.youtube_id or track.bandcamp_embed_src]


class TrackSnapshotCache:
    """File-backed snapshot cache keyed by username."""

    def __init__(self, directory: Path, ttl_seconds: int = 30 * 60) -> None:
        self._directory = Path(directory)
        self._ttl_seconds = ttl_seconds

    def _path(self, username: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", username.strip()) or "_"
        return self._directory / f"{SNAPSHOT_PREFIX}-{safe}.json"

    def load(self, username: str) -> TrackSnapshot | None:
        """Return the snapshot, or None when missing, expired or malformed."""
        path = self._path(username)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            updated_at = float(payload["updatedAt"])
            if time.time() - updated_at > self._ttl_seconds:
                logger.debug("Snapshot for %s expired", username)
                self._remove(path)
                return None
            return TrackSnapshot(
                discogs_tracks=[Track.from_dict(item) for item in payload["discogsTracks"]],
                playable_tracks=[Track.from_dict(item) for item in payload["playableTracks"]],
                updated_at=updated_at,
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Dropping malformed snapshot for %s: %s", username, e)
            self._remove(path)
            return None

    def save(self, username: str, discogs_tracks: list[Track]) -> None:
        """Write a fresh snapshot atomically (temp file + replace)."""
        payload = {
            "discogsTracks": [track.to_dict() for track in discogs_tracks],
            "playableTracks": [track.to_dict() for track in playable_subset(discogs_tracks)],
            "updatedAt": time.time(),
        }
        path = self._path(username)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(suffix=".tmp", dir=self._directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle)
            os.replace(tmp_path, path)
        except OSError as e:
            # Cache write failures only cost us a refetch next time
            logger.warning("Could not write snapshot for %s: %s", username, e)

    def clear(self, username: str) -> None:
        self._remove(self._path(username))

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Could not remove snapshot %s: %s", path, e)
