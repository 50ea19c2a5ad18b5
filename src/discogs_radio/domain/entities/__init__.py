"""Domain entities.

Hey future me - Track is THE record everything revolves around. Identity and provenance
(id, source) are fixed at creation; only working_status and the resolved-media fields
(youtube_id, bandcamp_*, playback_provider, cover_*) change afterwards, and only through the
TrackStore's update path.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

PLACEHOLDER_COVER = "/placeholder.svg"
DEFAULT_DURATION = 240
MAX_COVER_URLS = 4
MAX_YOUTUBE_CANDIDATES = 2


class TrackSource(str, Enum):
    """Where a track came from."""

    COLLECTION = "collection"
    WANTLIST = "wantlist"
    SIMILAR = "similar"


class WorkingStatus(str, Enum):
    """Resolution state of a track.

    PENDING: never attempted. WORKING: a provider succeeded. NON_WORKING: every provider
    failed or playback failed terminally (retried once per verifier sweep).
    """

    PENDING = "pending"
    WORKING = "working"
    NON_WORKING = "non_working"


class PlaybackProvider(str, Enum):
    """Which payload of a track is the active playback pointer."""

    YOUTUBE = "youtube"
    BANDCAMP = "bandcamp"
    NONE = "none"


class PlaybackState(str, Enum):
    """Per-track playback state machine."""

    IDLE = "idle"
    RESOLVING = "resolving"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


def prioritized(values: list[str | None], cap: int) -> list[str]:
    """Deduplicate values keeping first occurrences, drop blanks, keep at most ``cap``.

    Callers pass the highest-priority value first, so the oldest entries are the ones cut off.
    """
    result: list[str] = []
    for value in values:
        if value and value not in result:
            result.append(value)
    return result[:cap]


def is_placeholder_cover(url: str | None) -> bool:
    """True for a missing cover or one of the placeholder images."""
    return not url or "placeholder" in url


@dataclass
class Track:
    """A single playable track.

    The id is source-prefixed so collisions across sources can't happen:
    ``{source}-{releaseId}-{position}`` for Discogs API tracks and
    ``csv-{source}-{releaseId-or-row}`` for CSV imports.
    """

    id: str
    title: str
    artist: str
    source: TrackSource
    album: str = ""
    year: int = 0
    genre: str = "Unknown"
    label: str = "Unknown"
    country: str | None = None
    duration: int = DEFAULT_DURATION
    cover_url: str = PLACEHOLDER_COVER
    cover_urls: list[str] = field(default_factory=list)
    youtube_id: str = ""
    youtube_candidates: list[str] = field(default_factory=list)
    bandcamp_embed_src: str | None = None
    bandcamp_url: str | None = None
    playback_provider: PlaybackProvider | None = None
    discogs_release_id: int | None = None
    discogs_track_position: str | None = None
    discogs_track_index: int | None = None
    working_status: WorkingStatus = WorkingStatus.PENDING

    def __post_init__(self) -> None:
        self.source = TrackSource(self.source)
        self.working_status = WorkingStatus(self.working_status)
        if self.playback_provider is not None:
            self.playback_provider = PlaybackProvider(self.playback_provider)
        self.cover_urls = prioritized(list(self.cover_urls), MAX_COVER_URLS)
        self.youtube_candidates = prioritized(
            list(self.youtube_candidates), MAX_YOUTUBE_CANDIDATES
        )

    @property
    def has_placeholder_cover(self) -> bool:
        return is_placeholder_cover(self.cover_url)

    @property
    def has_media(self) -> bool:
        """True when any playable payload is stored."""
        return bool(self.youtube_id or self.bandcamp_embed_src)

    # Yo, "verified" in the background verifier sense means we have BOTH a video and a real
    # cover. A bandcamp-only track without a youtube id still counts as unverified on purpose,
    # the verifier then tries to find a youtube fallback for it.
    def needs_verification(self) -> bool:
        """True when the youtube id or a real cover is missing."""
        return not self.youtube_id or self.has_placeholder_cover

    def active_media(self) -> "ResolvedMedia | None":
        """The media the playback pointer selects, or None if it has no payload."""
        if self.playback_provider == PlaybackProvider.BANDCAMP and self.bandcamp_embed_src:
            return ResolvedMedia.bandcamp(
                self.bandcamp_embed_src,
                bandcamp_url=self.bandcamp_url,
                cover_url=self.cover_url,
            )
        if self.playback_provider == PlaybackProvider.YOUTUBE and self.youtube_id:
            return ResolvedMedia.youtube(self.youtube_id, cover_url=self.cover_url)
        return None

    def with_changes(self, **changes: Any) -> "Track":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        data["working_status"] = self.working_status.value
        data["playback_provider"] = (
            self.playback_provider.value if self.playback_provider else None
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class ResolvedMedia:
    """Result of resolving a track: youtube, bandcamp or none.

    Hey future me - build these through the classmethods, they enforce that the payload
    matching the provider tag is present. cover_url may be set on ANY variant, including
    NONE, so cover art can populate even when audio resolution failed.
    """

    provider: PlaybackProvider
    youtube_id: str | None = None
    bandcamp_embed_src: str | None = None
    bandcamp_url: str | None = None
    cover_url: str | None = None
    youtube_candidates: tuple[str, ...] = ()
    cover_urls: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.provider == PlaybackProvider.YOUTUBE and not self.youtube_id:
            raise ValueError("youtube media requires a youtube_id")
        if self.provider == PlaybackProvider.BANDCAMP and not self.bandcamp_embed_src:
            raise ValueError("bandcamp media requires a bandcamp_embed_src")

    @classmethod
    def youtube(
        cls,
        youtube_id: str,
        cover_url: str | None = None,
        youtube_candidates: tuple[str, ...] = (),
        cover_urls: tuple[str, ...] = (),
    ) -> "ResolvedMedia":
        return cls(
            provider=PlaybackProvider.YOUTUBE,
            youtube_id=youtube_id,
            cover_url=cover_url,
            youtube_candidates=youtube_candidates,
            cover_urls=cover_urls,
        )

    @classmethod
    def bandcamp(
        cls,
        bandcamp_embed_src: str,
        bandcamp_url: str | None = None,
        cover_url: str | None = None,
    ) -> "ResolvedMedia":
        return cls(
            provider=PlaybackProvider.BANDCAMP,
            bandcamp_embed_src=bandcamp_embed_src,
            bandcamp_url=bandcamp_url,
            cover_url=cover_url,
        )

    @classmethod
    def none(
        cls,
        cover_url: str | None = None,
        youtube_candidates: tuple[str, ...] = (),
        cover_urls: tuple[str, ...] = (),
    ) -> "ResolvedMedia":
        return cls(
            provider=PlaybackProvider.NONE,
            cover_url=cover_url,
            youtube_candidates=youtube_candidates,
            cover_urls=cover_urls,
        )

    @property
    def is_playable(self) -> bool:
        return self.provider != PlaybackProvider.NONE


@dataclass
class VideoCandidate:
    """A YouTube video referenced by Discogs release metadata."""

    video_id: str
    title: str = ""


@dataclass
class YouTubeVideo:
    """One result of the youtube-search endpoint."""

    video_id: str
    title: str = ""
    channel_title: str = ""
    thumbnail: str = ""
    duration_iso: str = ""


@dataclass
class YouTubeSearchResult:
    """Response of the youtube-search endpoint (already filtered to embeddable videos)."""

    videos: list[YouTubeVideo] = field(default_factory=list)
    next_page_token: str | None = None
    quota_exceeded: bool = False


@dataclass
class SavedMediaLink:
    """A persisted provider link for one release / track position."""

    provider: PlaybackProvider
    youtube_id: str | None = None
    bandcamp_embed_src: str | None = None
    bandcamp_url: str | None = None
    track_position: str | None = None


@dataclass
class DirectAudio:
    """A direct streamable audio URL extracted for a YouTube video."""

    audio_url: str
    source: str
    title: str | None = None
    author: str | None = None


@dataclass
class CoverArtRecord:
    """Cached cover art of a Discogs release (immutable once known)."""

    release_id: int
    cover_url: str | None = None
    thumb_url: str | None = None
    updated_at: datetime | None = None

    @property
    def best_url(self) -> str | None:
        return self.cover_url or self.thumb_url


@dataclass
class TrackCacheEntry:
    """Server-side metadata row for one track of one owner.

    covers holds up to four cover URLs (primary first), videos up to two youtube ids.
    """

    owner_key: str
    source: TrackSource
    track_id: str
    artist: str
    title: str
    release_id: int | None = None
    track_position: str | None = None
    album: str | None = None
    genre: str | None = None
    label: str | None = None
    year: int | None = None
    country: str | None = None
    covers: list[str] = field(default_factory=list)
    videos: list[str] = field(default_factory=list)
    working_status: WorkingStatus = WorkingStatus.PENDING

    def __post_init__(self) -> None:
        self.source = TrackSource(self.source)
        self.working_status = WorkingStatus(self.working_status)
        self.covers = prioritized(list(self.covers), MAX_COVER_URLS)
        self.videos = prioritized(list(self.videos), MAX_YOUTUBE_CANDIDATES)


__all__ = [
    "DEFAULT_DURATION",
    "MAX_COVER_URLS",
    "MAX_YOUTUBE_CANDIDATES",
    "PLACEHOLDER_COVER",
    "CoverArtRecord",
    "DirectAudio",
    "PlaybackProvider",
    "PlaybackState",
    "ResolvedMedia",
    "SavedMediaLink",
    "Track",
    "TrackCacheEntry",
    "TrackSource",
    "VideoCandidate",
    "WorkingStatus",
    "YouTubeSearchResult",
    "YouTubeVideo",
    "is_placeholder_cover",
    "prioritized",
]
