"""Title matching and identifier parsing helpers.

Hey future me - the scoring is a heuristic. What matters is the ORDER it produces: a video title
containing the whole track title beats one that only names the artist, which beats one that
merely shares a few words. The weights below (10 / 4 / 1 per token) just encode that order.
"""

import re
from urllib.parse import parse_qs, urlparse

from discogs_radio.domain.entities import VideoCandidate

TITLE_MATCH_SCORE = 10
ARTIST_MATCH_SCORE = 4
TOKEN_MATCH_SCORE = 1

_VIDEO_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{11}$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_DURATION_RE = re.compile(r"^\d+:\d{2}(:\d{2})?$")


def normalize_for_match(text: str | None) -> str:
    """Lowercase, '&' -> 'and', punctuation -> spaces, collapsed whitespace."""
    lowered = (text or "").lower().replace("&", " and ")
    return " ".join(_NON_ALNUM_RE.sub(" ", lowered).split())


def score_video_title(video_title: str, artist: str, track_title: str) -> int:
    """Score how well a video title matches a track."""
    video = normalize_for_match(video_title)
    title = normalize_for_match(track_title)
    if not video or not title:
        return 0
    artist_norm = normalize_for_match(artist)

    score = 0
    if title in video:
        score += TITLE_MATCH_SCORE
    if artist_norm and artist_norm in video:
        score += ARTIST_MATCH_SCORE

    video_tokens = set(video.split(" "))
    for token in set(title.split(" ")):
        if token in video_tokens:
            score += TOKEN_MATCH_SCORE
    return score


def rank_candidates(
    candidates: list[VideoCandidate], artist: str, track_title: str
) -> list[VideoCandidate]:
    """Sort candidates best-first. sorted() is stable, so ties keep Discogs order."""
    return sorted(
        candidates,
        key=lambda candidate: score_video_title(candidate.title, artist, track_title),
        reverse=True,
    )


def pick_candidate(
    ranked: list[VideoCandidate], prefer_different_from: str | None = None
) -> VideoCandidate | None:
    """First ranked candidate, skipping the id that just failed when one is given."""
    avoid = (prefer_different_from or "").strip()
    for candidate in ranked:
        if not avoid or candidate.video_id != avoid:
            return candidate
    return None


def extract_youtube_video_id(value: str | None) -> str | None:
    """Pull an 11-char video id out of a bare id, watch URL, youtu.be, /embed/ or /shorts/ URL."""
    raw = (value or "").strip()
    if not raw:
        return None
    if _VIDEO_ID_RE.match(raw):
        return raw

    parsed = urlparse(raw)
    if not parsed.scheme or not parsed.netloc:
        return None

    for candidate in parse_qs(parsed.query).get("v", []):
        if _VIDEO_ID_RE.match(candidate):
            return candidate

    if parsed.hostname == "youtu.be":
        candidate = parsed.path.lstrip("/")[:11]
        if _VIDEO_ID_RE.match(candidate):
            return candidate

    parts = [part for part in parsed.path.split("/") if part]
    for marker in ("embed", "shorts"):
        if marker in parts:
            idx = parts.index(marker)
            if idx + 1 < len(parts) and _VIDEO_ID_RE.match(parts[idx + 1]):
                return parts[idx + 1]
    return None


def extract_video_candidates(release: dict | None) -> list[VideoCandidate]:
    """YouTube candidates embedded in a Discogs release's ``videos`` list, deduplicated."""
    videos = (release or {}).get("videos")
    if not isinstance(videos, list):
        return []
    candidates: list[VideoCandidate] = []
    seen: set[str] = set()
    for video in videos:
        if not isinstance(video, dict):
            continue
        video_id = extract_youtube_video_id(video.get("uri") or video.get("url") or "")
        if not video_id or video_id in seen:
            continue
        seen.add(video_id)
        candidates.append(VideoCandidate(video_id=video_id, title=video.get("title") or ""))
    return candidates


def release_cover_url(release: dict | None) -> str | None:
    """The release's primary image, else its first image."""
    images = (release or {}).get("images")
    if not isinstance(images, list) or not images:
        return None
    for image in images:
        if isinstance(image, dict) and image.get("type") == "primary" and image.get("resource_url"):
            return image["resource_url"]
    first = images[0]
    return first.get("resource_url") if isinstance(first, dict) else None


def parse_discogs_duration(value: str | None) -> int | None:
    """Parse Discogs "M:SS" / "H:MM:SS" durations into seconds."""
    raw = (value or "").strip()
    if not raw or not _DURATION_RE.match(raw):
        return None
    parts = [int(part) for part in raw.split(":")]
    if len(parts) == 2:
        minutes, seconds = parts
        return minutes * 60 + seconds
    hours, minutes, seconds = parts
    return hours * 3600 + minutes * 60 + seconds


def position_sort_key(position: str | None) -> tuple:
    """Numeric-aware key for Discogs positions ("A2" < "A10" < "B1", "2" < "10")."""
    chunks = re.findall(r"\d+|\D+", (position or "").strip().lower())
    return tuple((0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk) for chunk in chunks)
