"""Tests for the sequential cover art scraper."""

from unittest.mock import AsyncMock

import pytest

from discogs_radio.application.services.resolvers.cover_art import CoverArtService
from discogs_radio.application.services.track_store import TrackStore
from discogs_radio.application.workers.cover_art_worker import CoverArtWorker


@pytest.fixture
def cover_art() -> AsyncMock:
    return AsyncMock(spec=CoverArtService)


@pytest.fixture
def store(make_track) -> TrackStore:
    return TrackStore(
        [
            make_track("a", discogs_release_id=1),
            make_track("b", discogs_release_id=2),
            make_track("c", discogs_release_id=3, cover_url="https://img/own.jpg"),
        ]
    )


class TestScrape:
    async def test_fetches_only_missing_covers(self, store, cover_art) -> None:
        cover_art.fetch_cover.side_effect = lambda release_id: f"https://img/{release_id}.jpg"
        worker = CoverArtWorker(store, cover_art, request_delay=0)

        assert await worker.scrape() == 2

        assert [c.args[0] for c in cover_art.fetch_cover.await_args_list] == [1, 2]
        assert store.get("a").cover_url == "https://img/1.jpg"
        assert store.get("c").cover_url == "https://img/own.jpg"
        assert worker.get_stats()["completed"] == 2
        assert not worker.is_scraping

    async def test_cover_found_meanwhile_is_kept(self, store, cover_art) -> None:
        async def fetch(release_id: int) -> str:
            store.patch("a", cover_url="https://img/foreground.jpg")
            return "https://img/late.jpg"

        cover_art.fetch_cover.side_effect = fetch
        await CoverArtWorker(store, cover_art, request_delay=0).scrape()
        assert store.get("a").cover_url == "https://img/foreground.jpg"

    async def test_stop_ends_scraping(self, store, cover_art) -> None:
        worker = CoverArtWorker(store, cover_art, request_delay=0)

        async def fetch(release_id: int) -> None:
            worker.stop()
            return None

        cover_art.fetch_cover.side_effect = fetch
        await worker.scrape()
        assert cover_art.fetch_cover.await_count == 1

    async def test_nothing_to_do(self, cover_art, make_track) -> None:
        worker = CoverArtWorker(TrackStore([make_track()]), cover_art)
        assert await worker.scrape() == 0


async def test_load_cached_uses_batch_lookup(store, cover_art) -> None:
    async def batch_load(tracks, on_cover):
        on_cover("b", "https://img/cached.jpg")
        return 1

    cover_art.batch_load.side_effect = batch_load
    worker = CoverArtWorker(store, cover_art)
    assert await worker.load_cached() == 1
    assert store.get("b").cover_url == "https://img/cached.jpg"
