"""Tests for the Discogs library loader."""

import random
from unittest.mock import AsyncMock

import pytest

from discogs_radio.application.services.discogs_library import DiscogsLibraryService
from discogs_radio.application.services.resolvers.release_fetcher import (
    CachedReleaseFetcher,
)
from discogs_radio.domain.entities import DEFAULT_DURATION, TrackSource
from discogs_radio.domain.exceptions import ExternalServiceError
from discogs_radio.domain.ports import IDiscogsClient


def _release(release_id: int, title: str = "Album") -> dict:
    return {
        "id": release_id,
        "basic_information": {
            "id": release_id,
            "title": title,
            "year": 1999,
            "artists": [{"name": "Band (3)"}],
            "labels": [{"name": "Label"}],
            "genres": [],
            "styles": ["Techno"],
            "cover_image": f"https://img/{release_id}.jpg",
        },
    }


TRACKLIST = {
    "tracklist": [
        {"type_": "heading", "title": "Side A"},
        {"type_": "track", "position": "A1", "title": "Intro", "duration": "1:30"},
        {"type_": "track", "position": "", "title": "Second", "duration": ""},
        {"type_": "track", "position": "B1", "title": "  "},
        {
            "type_": "track",
            "position": "B2",
            "title": "Guest",
            "artists": [{"name": "Guest (2)"}],
        },
    ]
}


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock(spec=IDiscogsClient)


@pytest.fixture
def fetcher() -> AsyncMock:
    return AsyncMock(spec=CachedReleaseFetcher)


@pytest.fixture
def service(client, fetcher) -> DiscogsLibraryService:
    return DiscogsLibraryService(client, fetcher, rng=random.Random(0))


class TestExpandRelease:
    """One track per playable tracklist entry."""

    async def test_builds_tracks_with_positions(self, service, fetcher) -> None:
        fetcher.get.return_value = TRACKLIST
        tracks = await service.expand_release(_release(10), TrackSource.COLLECTION)

        assert [t.id for t in tracks] == [
            "collection-10-A1",
            "collection-10-2",
            "collection-10-B2",
        ]
        intro = tracks[0]
        assert intro.duration == 90
        assert intro.artist == "Band"
        assert intro.album == "Album"
        assert intro.genre == "Techno"
        assert intro.discogs_track_index == 0
        assert intro.cover_url == "https://img/10.jpg"
        assert tracks[1].duration == DEFAULT_DURATION
        assert tracks[1].discogs_track_position == "2"
        assert tracks[2].artist == "Guest"

    async def test_missing_tracklist(self, service, fetcher) -> None:
        fetcher.get.return_value = None
        assert await service.expand_release(_release(10), TrackSource.WANTLIST) == []


class TestPages:
    async def test_fetch_collection_page(self, service, client) -> None:
        client.fetch_collection.return_value = {
            "releases": [_release(1), _release(2)],
            "pagination": {"page": 1, "pages": 3},
        }
        page = await service.fetch_collection(page=1, per_page=2)
        assert [t.id for t in page.tracks] == ["collection-1", "collection-2"]
        assert page.has_more

    async def test_fetch_wantlist_last_page(self, service, client) -> None:
        client.fetch_wantlist.return_value = {
            "wants": [_release(5)],
            "pagination": {"page": 2, "pages": 2},
        }
        page = await service.fetch_wantlist(page=2)
        assert page.tracks[0].source == TrackSource.WANTLIST
        assert not page.has_more


async def test_fetch_all_tracks_skips_failed_releases(service, client, fetcher) -> None:
    client.fetch_collection.return_value = {"releases": [_release(1), _release(2)]}
    client.fetch_wantlist.return_value = {"wants": [_release(3)]}

    async def get(release_id: int):
        if release_id == 2:
            raise ExternalServiceError("gone")
        return {"tracklist": [{"position": "A1", "title": f"Song {release_id}"}]}

    fetcher.get.side_effect = get
    tracks = await service.fetch_all_tracks(max_per_source=10)
    assert sorted(t.id for t in tracks) == ["collection-1-A1", "wantlist-3-A1"]
