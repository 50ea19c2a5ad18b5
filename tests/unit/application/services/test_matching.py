"""Tests for title scoring and Discogs field parsing."""

from discogs_radio.application.services.matching import (
    extract_video_candidates,
    extract_youtube_video_id,
    normalize_for_match,
    parse_discogs_duration,
    pick_candidate,
    position_sort_key,
    rank_candidates,
    release_cover_url,
    score_video_title,
)
from discogs_radio.domain.entities import VideoCandidate


class TestScoring:
    """Relative order: full title > artist only > shared words."""

    def test_normalize(self) -> None:
        assert normalize_for_match("Simon & Garfunkel - The Boxer!") == "simon and garfunkel the boxer"

    def test_title_beats_artist_beats_tokens(self) -> None:
        full = score_video_title("Artist - Blue Monday (Official)", "Artist", "Blue Monday")
        artist_only = score_video_title("Artist live at the BBC", "Artist", "Blue Monday")
        tokens = score_video_title("Monday mix", "Artist", "Blue Monday")
        assert full > artist_only > tokens > 0

    def test_empty_title_scores_zero(self) -> None:
        assert score_video_title("", "A", "T") == 0

    def test_rank_is_stable_on_ties(self) -> None:
        candidates = [
            VideoCandidate("aaaaaaaaaaa", "unrelated"),
            VideoCandidate("bbbbbbbbbbb", "also unrelated"),
            VideoCandidate("ccccccccccc", "Artist - Song"),
        ]
        ranked = rank_candidates(candidates, "Artist", "Song")
        assert [c.video_id for c in ranked] == ["ccccccccccc", "aaaaaaaaaaa", "bbbbbbbbbbb"]

    def test_pick_candidate_skips_avoided_id(self) -> None:
        ranked = [VideoCandidate("aaaaaaaaaaa"), VideoCandidate("bbbbbbbbbbb")]
        assert pick_candidate(ranked).video_id == "aaaaaaaaaaa"
        assert pick_candidate(ranked, "aaaaaaaaaaa").video_id == "bbbbbbbbbbb"
        assert pick_candidate(ranked[:1], "aaaaaaaaaaa") is None


class TestVideoIds:
    def test_extracts_from_url_shapes(self) -> None:
        vid = "dQw4w9WgXcQ"
        assert extract_youtube_video_id(vid) == vid
        assert extract_youtube_video_id(f"https://www.youtube.com/watch?v={vid}&t=1") == vid
        assert extract_youtube_video_id(f"https://youtu.be/{vid}") == vid
        assert extract_youtube_video_id(f"https://www.youtube.com/embed/{vid}") == vid
        assert extract_youtube_video_id(f"https://youtube.com/shorts/{vid}") == vid

    def test_rejects_garbage(self) -> None:
        assert extract_youtube_video_id("") is None
        assert extract_youtube_video_id("not a url") is None
        assert extract_youtube_video_id("https://vimeo.com/123") is None

    def test_candidates_from_release_are_deduplicated(self) -> None:
        release = {
            "videos": [
                {"uri": "https://www.youtube.com/watch?v=dQw4w9WgXcQ", "title": "A"},
                {"uri": "https://youtu.be/dQw4w9WgXcQ", "title": "dup"},
                {"uri": "https://vimeo.com/1", "title": "skip"},
                "junk",
            ]
        }
        candidates = extract_video_candidates(release)
        assert candidates == [VideoCandidate("dQw4w9WgXcQ", "A")]
        assert extract_video_candidates(None) == []


class TestReleaseFields:
    def test_cover_prefers_primary_image(self) -> None:
        release = {
            "images": [
                {"type": "secondary", "resource_url": "https://img/2.jpg"},
                {"type": "primary", "resource_url": "https://img/1.jpg"},
            ]
        }
        assert release_cover_url(release) == "https://img/1.jpg"
        assert release_cover_url({"images": [{"resource_url": "https://img/3.jpg"}]}) == (
            "https://img/3.jpg"
        )
        assert release_cover_url({}) is None

    def test_parse_duration(self) -> None:
        assert parse_discogs_duration("3:45") == 225
        assert parse_discogs_duration("1:02:03") == 3723
        assert parse_discogs_duration("") is None
        assert parse_discogs_duration("abc") is None

    def test_position_sort_key_is_numeric_aware(self) -> None:
        positions = ["B1", "A10", "A2", "10", "2"]
        assert sorted(positions, key=position_sort_key) == ["2", "10", "A2", "A10", "B1"]
