"""Tests for Track, ResolvedMedia and the cache entry entities."""

import pytest

from discogs_radio.domain.entities import (
    PLACEHOLDER_COVER,
    PlaybackProvider,
    ResolvedMedia,
    Track,
    TrackCacheEntry,
    TrackSource,
    WorkingStatus,
    is_placeholder_cover,
    prioritized,
)


class TestPrioritized:
    """Capped, deduplicated lists (cover_urls, youtube_candidates)."""

    def test_keeps_first_occurrence_and_caps(self) -> None:
        assert prioritized(["a", "b", "a", "c", "d", "e"], 4) == ["a", "b", "c", "d"]

    def test_drops_blank_values(self) -> None:
        assert prioritized([None, "", "x"], 2) == ["x"]


class TestTrack:
    """Track dataclass behaviour."""

    def test_defaults(self, make_track) -> None:
        track = make_track()
        assert track.duration == 240
        assert track.cover_url == PLACEHOLDER_COVER
        assert track.working_status == WorkingStatus.PENDING
        assert track.has_placeholder_cover
        assert not track.has_media

    def test_string_enums_are_coerced(self) -> None:
        track = Track(
            id="wantlist-1-A",
            title="T",
            artist="A",
            source="wantlist",
            working_status="working",
            playback_provider="youtube",
        )
        assert track.source == TrackSource.WANTLIST
        assert track.working_status == WorkingStatus.WORKING
        assert track.playback_provider == PlaybackProvider.YOUTUBE

    def test_lists_are_capped_on_creation(self, make_track) -> None:
        track = make_track(
            cover_urls=["c1", "c2", "c3", "c4", "c5"],
            youtube_candidates=["v1", "v2", "v3"],
        )
        assert track.cover_urls == ["c1", "c2", "c3", "c4"]
        assert track.youtube_candidates == ["v1", "v2"]

    def test_needs_verification(self, make_track) -> None:
        assert make_track().needs_verification()
        assert make_track(youtube_id="abc").needs_verification()
        assert not make_track(youtube_id="abc", cover_url="https://img/1.jpg").needs_verification()

    def test_active_media_follows_provider_pointer(self, make_track) -> None:
        track = make_track(
            youtube_id="yt1",
            bandcamp_embed_src="https://bandcamp.com/EmbeddedPlayer/track=1",
            playback_provider=PlaybackProvider.BANDCAMP,
        )
        media = track.active_media()
        assert media is not None
        assert media.provider == PlaybackProvider.BANDCAMP

        switched = track.with_changes(playback_provider=PlaybackProvider.YOUTUBE)
        assert switched.active_media() == ResolvedMedia.youtube("yt1", cover_url=track.cover_url)

    def test_active_media_none_without_pointer(self, make_track) -> None:
        assert make_track(youtube_id="yt1").active_media() is None

    def test_dict_round_trip(self, make_track) -> None:
        track = make_track(
            youtube_id="yt1",
            playback_provider=PlaybackProvider.YOUTUBE,
            discogs_release_id=42,
        )
        data = track.to_dict()
        assert data["source"] == "collection"
        assert data["playback_provider"] == "youtube"
        assert Track.from_dict({**data, "unknown_field": 1}) == track


class TestResolvedMedia:
    """Tagged media variant."""

    def test_youtube_requires_id(self) -> None:
        with pytest.raises(ValueError):
            ResolvedMedia(provider=PlaybackProvider.YOUTUBE)

    def test_bandcamp_requires_embed(self) -> None:
        with pytest.raises(ValueError):
            ResolvedMedia(provider=PlaybackProvider.BANDCAMP)

    def test_none_may_carry_cover(self) -> None:
        media = ResolvedMedia.none(cover_url="https://img/1.jpg")
        assert not media.is_playable
        assert media.cover_url == "https://img/1.jpg"


class TestTrackCacheEntry:
    def test_caps_covers_and_videos(self) -> None:
        entry = TrackCacheEntry(
            owner_key="user",
            source="collection",
            track_id="collection-1-A1",
            artist="A",
            title="T",
            covers=["1", "2", "3", "4", "5"],
            videos=["a", "b", "c"],
        )
        assert entry.covers == ["1", "2", "3", "4"]
        assert entry.videos == ["a", "b"]


def test_is_placeholder_cover() -> None:
    assert is_placeholder_cover(None)
    assert is_placeholder_cover("")
    assert is_placeholder_cover("/placeholder.svg")
    assert not is_placeholder_cover("https://i.discogs.com/cover.jpg")
