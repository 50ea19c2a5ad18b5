"""Tests for the saved-media resolver."""

from unittest.mock import AsyncMock

import pytest

from discogs_radio.application.services.resolvers.saved_media import (
    SavedMediaResolver,
    select_saved_media,
)
from discogs_radio.domain.entities import PlaybackProvider, ResolvedMedia, SavedMediaLink
from discogs_radio.domain.ports import ITrackMediaRepository

YT = PlaybackProvider.YOUTUBE
BC = PlaybackProvider.BANDCAMP


class TestSelectSavedMedia:
    """Bandcamp first, exact position first."""

    def test_bandcamp_beats_youtube(self) -> None:
        links = [
            SavedMediaLink(YT, youtube_id="yt1", track_position="A1"),
            SavedMediaLink(BC, bandcamp_embed_src="https://bc/embed", track_position="A1"),
        ]
        media = select_saved_media(links, "A1")
        assert media.provider == BC
        assert media.bandcamp_embed_src == "https://bc/embed"

    def test_exact_position_wins(self) -> None:
        links = [
            SavedMediaLink(BC, bandcamp_embed_src="https://bc/other", track_position="B2"),
            SavedMediaLink(YT, youtube_id="yt-a1", track_position="A1"),
        ]
        assert select_saved_media(links, " A1 ") == ResolvedMedia.youtube("yt-a1")

    def test_falls_back_to_any_row(self) -> None:
        links = [SavedMediaLink(YT, youtube_id="yt-b2", track_position="B2")]
        assert select_saved_media(links, "A1").youtube_id == "yt-b2"

    def test_rows_without_payload_are_skipped(self) -> None:
        assert select_saved_media([SavedMediaLink(YT, youtube_id=None)], None) is None
        assert select_saved_media([], "A1") is None


@pytest.fixture
def repository() -> AsyncMock:
    return AsyncMock(spec=ITrackMediaRepository)


class TestSavedMediaResolver:
    """Memoized lookups per release."""

    async def test_resolves_and_memoizes(self, repository, make_track) -> None:
        repository.get_for_release.return_value = [SavedMediaLink(YT, youtube_id="yt1")]
        resolver = SavedMediaResolver(repository, username="digger")
        track = make_track(discogs_release_id=42, discogs_track_position="A1")

        assert (await resolver.resolve(track)).youtube_id == "yt1"
        assert (await resolver.resolve(track)).youtube_id == "yt1"
        repository.get_for_release.assert_awaited_once_with("digger", 42)

    async def test_empty_result_is_not_memoized(self, repository, make_track) -> None:
        repository.get_for_release.return_value = []
        resolver = SavedMediaResolver(repository, username="digger")
        track = make_track(discogs_release_id=42)

        assert await resolver.resolve(track) is None
        assert await resolver.resolve(track) is None
        assert repository.get_for_release.await_count == 2

    async def test_without_username_or_release(self, repository, make_track) -> None:
        resolver = SavedMediaResolver(repository, username="  ")
        assert await resolver.resolve(make_track(discogs_release_id=42)) is None
        assert await SavedMediaResolver(repository, "digger").resolve(make_track()) is None
        repository.get_for_release.assert_not_awaited()

    async def test_remember_upserts_and_invalidates(self, repository, make_track) -> None:
        repository.get_for_release.return_value = [SavedMediaLink(YT, youtube_id="old")]
        resolver = SavedMediaResolver(repository, username="digger")
        track = make_track(discogs_release_id=7, discogs_track_position="B1")
        await resolver.resolve(track)

        await resolver.remember(track, ResolvedMedia.youtube("new"))

        username, release_id, links = repository.upsert.await_args.args
        assert (username, release_id) == ("digger", 7)
        assert links[0].youtube_id == "new"
        assert links[0].track_position == "B1"

        await resolver.resolve(track)
        assert repository.get_for_release.await_count == 2
