"""Tests for the memoized release fetcher."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from discogs_radio.application.services.resolvers.release_fetcher import (
    CachedReleaseFetcher,
)
from discogs_radio.domain.exceptions import AuthenticationError
from discogs_radio.domain.ports import IDiscogsClient


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock(spec=IDiscogsClient)


class TestCachedReleaseFetcher:
    async def test_fetches_once(self, client) -> None:
        client.fetch_release.return_value = {"id": 1, "tracklist": []}
        fetcher = CachedReleaseFetcher(client)
        assert await fetcher.get(1) == {"id": 1, "tracklist": []}
        await fetcher.get(1)
        client.fetch_release.assert_awaited_once_with(1)

    async def test_concurrent_calls_share_one_request(self, client) -> None:
        async def slow(release_id: int) -> dict:
            await asyncio.sleep(0.01)
            return {"id": release_id}

        client.fetch_release.side_effect = slow
        fetcher = CachedReleaseFetcher(client)
        results = await asyncio.gather(fetcher.get(5), fetcher.get(5), fetcher.get(5))
        assert results == [{"id": 5}] * 3
        assert client.fetch_release.await_count == 1

    async def test_errors_propagate_and_are_not_cached(self, client) -> None:
        client.fetch_release.side_effect = [AuthenticationError("nope"), {"id": 3}]
        fetcher = CachedReleaseFetcher(client)
        with pytest.raises(AuthenticationError):
            await fetcher.get(3)
        assert await fetcher.get(3) == {"id": 3}

    async def test_missing_release_is_not_cached(self, client) -> None:
        client.fetch_release.return_value = None
        fetcher = CachedReleaseFetcher(client)
        assert await fetcher.get(9) is None
        await fetcher.get(9)
        assert client.fetch_release.await_count == 2

    async def test_without_client(self) -> None:
        fetcher = CachedReleaseFetcher(None)
        assert not fetcher.available
        assert await fetcher.get(1) is None
