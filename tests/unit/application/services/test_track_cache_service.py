"""Tests for the per-owner track metadata cache."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from discogs_radio.application.services.track_cache_service import (
    TrackCacheService,
    apply_cached_metadata,
    resolve_owner_key,
    to_entry,
)
from discogs_radio.domain.entities import TrackCacheEntry, TrackSource, WorkingStatus
from discogs_radio.domain.ports import ITrackCacheRepository


class TestOwnerKey:
    def test_username_wins(self, tmp_path: Path) -> None:
        assert resolve_owner_key(" digger ", tmp_path / "key") == "digger"
        assert not (tmp_path / "key").exists()

    def test_csv_key_is_created_once(self, tmp_path: Path) -> None:
        key_path = tmp_path / "nested" / "owner_key"
        first = resolve_owner_key(None, key_path)
        assert first.startswith("csv-")
        assert resolve_owner_key("", key_path) == first


class TestEntries:
    def test_to_entry_puts_primary_first(self, make_track) -> None:
        track = make_track(
            cover_url="https://img/main.jpg",
            cover_urls=["https://img/alt.jpg", "https://img/main.jpg"],
            youtube_id="v1",
            youtube_candidates=["v2", "v1", "v3"],
        )
        entry = to_entry("owner", track)
        assert entry.covers == ["https://img/main.jpg", "https://img/alt.jpg"]
        assert entry.videos == ["v1", "v2"]
        assert entry.working_status == WorkingStatus.WORKING

    def test_placeholder_cover_is_not_cached(self, make_track) -> None:
        assert to_entry("owner", make_track()).covers == []

    def test_apply_cached_metadata(self, make_track) -> None:
        entry = TrackCacheEntry(
            owner_key="owner",
            source=TrackSource.COLLECTION,
            track_id="t1",
            artist="Artist",
            title="Title",
            covers=["https://img/cached.jpg"],
            videos=["cached"],
            country="DE",
            working_status=WorkingStatus.NON_WORKING,
        )
        plain, real_cover = apply_cached_metadata(
            [make_track("t1"), make_track("t2", cover_url="https://img/own.jpg")], [entry]
        )
        assert plain.cover_url == "https://img/cached.jpg"
        assert plain.youtube_id == "cached"
        assert plain.country == "DE"
        assert plain.working_status == WorkingStatus.NON_WORKING
        assert real_cover.cover_url == "https://img/own.jpg"

    def test_real_cover_beats_cached(self, make_track) -> None:
        entry = TrackCacheEntry(
            "owner", TrackSource.COLLECTION, "t1", "A", "T", covers=["https://img/cached.jpg"]
        )
        (track,) = apply_cached_metadata([make_track("t1", cover_url="https://img/own.jpg")], [entry])
        assert track.cover_url == "https://img/own.jpg"


@pytest.fixture
def repository() -> AsyncMock:
    return AsyncMock(spec=ITrackCacheRepository)


class TestTrackCacheService:
    async def test_hydrate_loads_owner_rows(self, repository, make_track) -> None:
        repository.load.return_value = []
        service = TrackCacheService(repository, "owner")
        tracks = [make_track()]
        assert await service.hydrate(tracks, TrackSource.COLLECTION) == tracks
        repository.load.assert_awaited_once_with("owner", TrackSource.COLLECTION)

    async def test_debounced_writes_collapse(self, repository, make_track) -> None:
        service = TrackCacheService(repository, "owner", debounce_seconds=0.01)
        service.schedule_upsert([make_track("a", youtube_id="v1")])
        service.schedule_upsert([make_track("a", youtube_id="v2"), make_track("b")])
        assert service.pending_count == 2

        await asyncio.sleep(0.05)

        repository.upsert.assert_awaited_once()
        entries = repository.upsert.await_args.args[0]
        assert {e.track_id: e.videos for e in entries} == {"a": ["v2"], "b": []}
        assert service.pending_count == 0

    async def test_close_flushes_pending(self, repository, make_track) -> None:
        service = TrackCacheService(repository, "owner", debounce_seconds=10)
        service.schedule_upsert([make_track()])
        await service.close()
        repository.upsert.assert_awaited_once()

    async def test_without_repository(self, make_track) -> None:
        service = TrackCacheService(None, "owner")
        service.schedule_upsert([make_track()])
        assert await service.flush() == 0
        assert await service.load() == []
