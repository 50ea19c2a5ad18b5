"""Tests for the per-username track snapshot."""

import json
import time
from pathlib import Path

from discogs_radio.application.cache.snapshot_cache import (
    TrackSnapshotCache,
    playable_subset,
)


class TestTrackSnapshotCache:
    """File-backed snapshot with TTL."""

    def test_save_and_load(self, tmp_path: Path, make_track) -> None:
        cache = TrackSnapshotCache(tmp_path)
        tracks = [make_track("collection-1-A1", youtube_id="v1"), make_track("collection-1-A2")]
        cache.save("digger", tracks)

        snapshot = cache.load("digger")
        assert snapshot is not None
        assert [t.id for t in snapshot.discogs_tracks] == ["collection-1-A1", "collection-1-A2"]
        assert [t.id for t in snapshot.playable_tracks] == ["collection-1-A1"]

    def test_missing_snapshot(self, tmp_path: Path) -> None:
        assert TrackSnapshotCache(tmp_path).load("nobody") is None

    def test_expired_snapshot_is_deleted(self, tmp_path: Path, make_track) -> None:
        cache = TrackSnapshotCache(tmp_path, ttl_seconds=60)
        cache.save("digger", [make_track()])
        path = next(tmp_path.glob("*.json"))
        payload = json.loads(path.read_text())
        payload["updatedAt"] = time.time() - 3600
        path.write_text(json.dumps(payload))

        assert cache.load("digger") is None
        assert not path.exists()

    def test_malformed_snapshot_is_deleted(self, tmp_path: Path) -> None:
        cache = TrackSnapshotCache(tmp_path)
        path = tmp_path / "discogs-tracks-digger.json"
        path.write_text("{not json")
        assert cache.load("digger") is None
        assert not path.exists()

    def test_username_is_sanitized_in_filename(self, tmp_path: Path, make_track) -> None:
        cache = TrackSnapshotCache(tmp_path)
        cache.save("../evil user", [make_track()])
        names = [p.name for p in tmp_path.iterdir()]
        assert names == ["discogs-tracks-.._evil_user.json"]


def test_playable_subset(make_track) -> None:
    tracks = [
        make_track("a", youtube_id="v"),
        make_track("b", bandcamp_embed_src="https://bandcamp.com/EmbeddedPlayer/track=1"),
        make_track("c"),
    ]
    assert [t.id for t in playable_subset(tracks)] == ["a", "b"]
