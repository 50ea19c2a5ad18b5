"""Tests for the cover art service."""

from unittest.mock import AsyncMock

import pytest

from discogs_radio.application.services.resolvers.cover_art import CoverArtService, needs_cover
from discogs_radio.domain.entities import CoverArtRecord
from discogs_radio.domain.exceptions import ExternalServiceError
from discogs_radio.domain.ports import ICoverArtRepository, ICoverArtSource


@pytest.fixture
def repository() -> AsyncMock:
    return AsyncMock(spec=ICoverArtRepository)


@pytest.fixture
def source() -> AsyncMock:
    return AsyncMock(spec=ICoverArtSource)


def test_needs_cover(make_track) -> None:
    assert needs_cover(make_track(discogs_release_id=1))
    assert not needs_cover(make_track(discogs_release_id=1, cover_url="https://img/1.jpg"))
    assert not needs_cover(make_track())


class TestFetchCover:
    async def test_cached_row_is_final(self, repository, source) -> None:
        repository.get.return_value = CoverArtRecord(1, cover_url="https://img/cached.jpg")
        assert await CoverArtService(repository, source).fetch_cover(1) == "https://img/cached.jpg"
        source.fetch_cover.assert_not_awaited()

    async def test_miss_fetches_and_stores(self, repository, source) -> None:
        repository.get.return_value = None
        source.fetch_cover.return_value = CoverArtRecord(1, thumb_url="https://img/thumb.jpg")
        url = await CoverArtService(repository, source).fetch_cover(1)
        assert url == "https://img/thumb.jpg"
        stored = repository.upsert.await_args.args[0]
        assert stored.release_id == 1
        assert stored.cover_url == "https://img/thumb.jpg"

    async def test_source_failure_returns_none(self, repository, source) -> None:
        repository.get.return_value = None
        source.fetch_cover.side_effect = ExternalServiceError("down")
        assert await CoverArtService(repository, source).fetch_cover(1) is None
        repository.upsert.assert_not_awaited()


class TestBatchLoad:
    async def test_updates_tracks_with_rows(self, repository, source, make_track) -> None:
        repository.get_many.return_value = {2: CoverArtRecord(2, cover_url="https://img/2.jpg")}
        tracks = [
            make_track("a", discogs_release_id=2),
            make_track("b", discogs_release_id=3),
            make_track("c", discogs_release_id=2, cover_url="https://img/own.jpg"),
        ]
        hits: list[tuple[str, str]] = []
        updated = await CoverArtService(repository, source).batch_load(
            tracks, lambda track_id, url: hits.append((track_id, url))
        )
        assert updated == 1
        assert hits == [("a", "https://img/2.jpg")]
        repository.get_many.assert_awaited_once_with([2, 3])

    async def test_nothing_to_load(self, repository, source, make_track) -> None:
        assert await CoverArtService(repository, source).batch_load([make_track()], print) == 0
        repository.get_many.assert_not_awaited()
