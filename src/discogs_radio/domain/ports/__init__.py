"""Port interfaces (abstract collaborators) of the resolution and playback core.

Hey future me - application code only ever talks to these ABCs. Concrete adapters live in
infrastructure/ (httpx RPC clients, SQLAlchemy repositories) and tests plug in
AsyncMock(spec=...) versions.
"""

from abc import ABC, abstractmethod
from typing import Any

from discogs_radio.domain.entities import (
    CoverArtRecord,
    DirectAudio,
    SavedMediaLink,
    TrackCacheEntry,
    TrackSource,
    YouTubeSearchResult,
)


class IDiscogsClient(ABC):
    """Black-box Discogs catalog fetcher (OAuth handled elsewhere)."""

    @abstractmethod
    async def fetch_release(self, release_id: int) -> dict[str, Any] | None:
        """Fetch release detail with tracklist, videos and images.

        Raises:
            AuthenticationError: Discogs rejected the stored credentials
            ExternalServiceError: transport or server failure
        """
        pass

    @abstractmethod
    async def fetch_collection(self, page: int = 1, per_page: int = 50) -> dict[str, Any]:
        """Fetch one page of the collection: ``{"releases": [...], "pagination": {...}}``."""
        pass

    @abstractmethod
    async def fetch_wantlist(self, page: int = 1, per_page: int = 50) -> dict[str, Any]:
        """Fetch one page of the wantlist: ``{"wants": [...], "pagination": {...}}``."""
        pass


class IYouTubeSearchClient(ABC):
    """The youtube-search endpoint."""

    @abstractmethod
    async def search(
        self,
        query: str,
        max_results: int,
        artist: str,
        title: str,
        refresh: bool = False,
    ) -> YouTubeSearchResult:
        """Search YouTube, returning embeddable videos only.

        Raises:
            QuotaExceededError: quota exhausted (429 / 403 / quota messages)
            ExternalServiceError: any other failure
        """
        pass


class IDirectAudioBackend(ABC):
    """One direct-audio extraction strategy (yt-dlp, Invidious)."""

    name: str

    @abstractmethod
    async def extract(self, video_id: str) -> DirectAudio | None:
        """Return a direct audio URL, or None when extraction failed."""
        pass


class ITrackMediaRepository(ABC):
    """Saved provider links per (username, release, position, provider)."""

    @abstractmethod
    async def get_for_release(self, username: str, release_id: int) -> list[SavedMediaLink]:
        pass

    @abstractmethod
    async def upsert(self, username: str, release_id: int, links: list[SavedMediaLink]) -> None:
        pass


class ITrackCacheRepository(ABC):
    """Server-side track metadata cache partitioned by owner key."""

    @abstractmethod
    async def load(
        self, owner_key: str, source: TrackSource | None = None
    ) -> list[TrackCacheEntry]:
        pass

    @abstractmethod
    async def upsert(self, entries: list[TrackCacheEntry]) -> None:
        """Insert or update rows, conflict key (owner_key, track_id)."""
        pass


class ICoverArtRepository(ABC):
    """Release cover art table."""

    @abstractmethod
    async def get(self, release_id: int) -> CoverArtRecord | None:
        pass

    @abstractmethod
    async def get_many(self, release_ids: list[int]) -> dict[int, CoverArtRecord]:
        pass

    @abstractmethod
    async def upsert(self, record: CoverArtRecord) -> None:
        pass


class ICoverArtSource(ABC):
    """Public metadata endpoint used when the cover art table has no row."""

    @abstractmethod
    async def fetch_cover(self, release_id: int) -> CoverArtRecord | None:
        pass


class IPreferenceStore(ABC):
    """Likes / dislikes, keyed by track id (owned outside the core)."""

    @abstractmethod
    async def get_disliked_ids(self) -> set[str]:
        pass

    @abstractmethod
    async def add_dislike(self, track_id: str) -> None:
        pass

    @abstractmethod
    async def set_liked(self, track_id: str, liked: bool) -> None:
        pass

    @abstractmethod
    async def get_liked_ids(self) -> set[str]:
        pass


__all__ = [
    "ICoverArtRepository",
    "ICoverArtSource",
    "IDirectAudioBackend",
    "IDiscogsClient",
    "IPreferenceStore",
    "ITrackCacheRepository",
    "ITrackMediaRepository",
    "IYouTubeSearchClient",
]
