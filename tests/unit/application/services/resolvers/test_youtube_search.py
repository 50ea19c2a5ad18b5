"""Tests for the YouTube search resolver."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from discogs_radio.application.cache.youtube_search_cache import (
    YouTubeSearchCache,
    search_cache_key,
)
from discogs_radio.application.services.resolvers.youtube_search import YouTubeSearchResolver
from discogs_radio.domain.entities import YouTubeSearchResult, YouTubeVideo
from discogs_radio.domain.exceptions import ExternalServiceError, QuotaExceededError
from discogs_radio.domain.ports import IYouTubeSearchClient


def _found(video_id: str) -> YouTubeSearchResult:
    return YouTubeSearchResult(videos=[YouTubeVideo(video_id=video_id, title="x")])


@pytest.fixture
def client() -> AsyncMock:
    mock = AsyncMock(spec=IYouTubeSearchClient)
    mock.search.return_value = _found("found000001")
    return mock


@pytest.fixture
def resolver(client) -> YouTubeSearchResolver:
    return YouTubeSearchResolver(
        client, YouTubeSearchCache(), max_results=5, min_interval=0
    )


class TestShortCircuits:
    """Cheap checks before the network."""

    async def test_existing_video_id(self, resolver, client, make_track) -> None:
        assert await resolver.search(make_track(youtube_id="have0000001")) == "have0000001"
        client.search.assert_not_awaited()

    async def test_positive_cache(self, resolver, client, make_track) -> None:
        track = make_track(artist="Moby", title="Porcelain")
        assert await resolver.search(track) == "found000001"
        assert await resolver.search(track) == "found000001"
        assert client.search.await_count == 1
        kwargs = client.search.await_args.kwargs
        assert kwargs["query"] == "Moby Porcelain"
        assert kwargs["max_results"] == 5
        assert kwargs["refresh"] is False

    async def test_negative_cache(self, resolver, client, make_track) -> None:
        client.search.return_value = YouTubeSearchResult()
        track = make_track()
        assert await resolver.search(track) == ""
        assert await resolver.search(track) == ""
        assert client.search.await_count == 1
        assert resolver.cache.is_unavailable(search_cache_key(track.artist, track.title))

    async def test_concurrent_searches_share_one_call(self, resolver, client, make_track) -> None:
        async def slow(**kwargs):
            await asyncio.sleep(0.01)
            return _found("shared00001")

        client.search.side_effect = slow
        track = make_track()
        results = await asyncio.gather(*(resolver.search(track) for _ in range(3)))
        assert results == ["shared00001"] * 3
        assert client.search.await_count == 1


class TestQuota:
    async def test_quota_error_sets_sticky_flag(self, resolver, client, make_track) -> None:
        client.search.side_effect = QuotaExceededError("quota", service="youtube-search")
        assert await resolver.search(make_track("a", title="One")) == ""
        assert resolver.quota_exceeded

        client.search.side_effect = None
        assert await resolver.search(make_track("b", title="Two")) == ""
        assert client.search.await_count == 1

    async def test_quota_payload_sets_flag(self, resolver, client, make_track) -> None:
        client.search.return_value = YouTubeSearchResult(quota_exceeded=True)
        assert await resolver.search(make_track()) == ""
        assert resolver.quota_exceeded

    async def test_force_ignores_flag_and_caches(self, resolver, client, make_track) -> None:
        resolver.cache.mark_quota_exceeded()
        client.search.return_value = YouTubeSearchResult()
        track = make_track()
        await resolver.search(track)
        await resolver.search(track, force=True)
        await resolver.search(track, force=True, max_results=8)
        assert client.search.await_count == 2
        assert client.search.await_args.kwargs["refresh"] is True
        assert client.search.await_args.kwargs["max_results"] == 8

    async def test_clear_resets_flag(self, resolver, make_track) -> None:
        resolver.cache.mark_quota_exceeded()
        await resolver.clear()
        assert not resolver.quota_exceeded


async def test_backend_failure_is_not_negative_cached(resolver, client, make_track) -> None:
    client.search.side_effect = [ExternalServiceError("503"), _found("second00001")]
    track = make_track()
    assert await resolver.search(track) == ""
    assert not resolver.cache.is_unavailable(search_cache_key(track.artist, track.title))
    assert await resolver.search(track) == "second00001"


async def test_without_client(make_track) -> None:
    resolver = YouTubeSearchResolver(None, YouTubeSearchCache(), min_interval=0)
    assert await resolver.search(make_track()) == ""


def test_search_url(make_track) -> None:
    url = YouTubeSearchResolver.search_url(make_track(artist="Daft Punk", title="Da Funk"))
    assert url == "https://www.youtube.com/results?search_query=Daft+Punk+Da+Funk"


class TestAvoid:
    """Alternate lookups that must skip one video id."""

    async def test_skips_avoided_id_and_caches_the_next(
        self, resolver, client, make_track
    ) -> None:
        client.search.return_value = YouTubeSearchResult(
            videos=[
                YouTubeVideo(video_id="failing00001", title="x"),
                YouTubeVideo(video_id="altvideo0001", title="y"),
            ]
        )
        track = make_track(youtube_id="failing00001", artist="Moby", title="Porcelain")

        assert await resolver.search(track, force=True, avoid="failing00001") == "altvideo0001"
        assert await resolver.cache.get(search_cache_key("Moby", "Porcelain")) == "altvideo0001"
        assert client.search.await_args.kwargs["refresh"] is True

    async def test_only_avoided_id_found(self, resolver, client, make_track) -> None:
        client.search.return_value = _found("failing00001")
        track = make_track(artist="Moby", title="Porcelain")

        assert await resolver.search(track, force=True, avoid="failing00001") == ""
        key = search_cache_key("Moby", "Porcelain")
        assert not await resolver.cache.has(key)
        assert not resolver.cache.is_unavailable(key)
