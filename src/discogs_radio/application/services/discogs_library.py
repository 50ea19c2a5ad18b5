"""Discogs library loader - turns collection/wantlist releases into per-track Tracks."""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any

from discogs_radio.application.services.csv_import import strip_artist_numbering
from discogs_radio.application.services.matching import parse_discogs_duration
from discogs_radio.application.services.resolvers.release_fetcher import (
    CachedReleaseFetcher,
)
from discogs_radio.domain.entities import (
    DEFAULT_DURATION,
    PLACEHOLDER_COVER,
    Track,
    TrackSource,
)
from discogs_radio.domain.exceptions import ExternalServiceError
from discogs_radio.domain.ports import IDiscogsClient

logger = logging.getLogger(__name__)


@dataclass
class LibraryPage:
    """One page of collection or wantlist tracks."""

    tracks: list[Track]
    has_more: bool


@dataclass
class _ReleaseInfo:
    release_id: int
    artist: str
    album: str
    year: int
    genre: str
    label: str
    cover_url: str


def _release_info(item: dict[str, Any]) -> _ReleaseInfo:
    info = item.get("basic_information") or {}
    artists = info.get("artists") or []
    labels = info.get("labels") or []
    genres = info.get("genres") or []
    styles = info.get("styles") or []
    artist = (artists[0].get("name") if artists else None) or "Unknown Artist"
    return _ReleaseInfo(
        release_id=int(info.get("id") or item.get("id") or 0),
        artist=strip_artist_numbering(artist),
        album=info.get("title") or "",
        year=int(info.get("year") or 0),
        genre=(genres[0] if genres else None) or (styles[0] if styles else None) or "Unknown",
        label=(labels[0].get("name") if labels else None) or "Unknown",
        cover_url=info.get("cover_image") or info.get("thumb") or PLACEHOLDER_COVER,
    )


def _has_more(pagination: dict[str, Any] | None) -> bool:
    pagination = pagination or {}
    try:
        return int(pagination.get("page", 0)) < int(pagination.get("pages", 0))
    except (TypeError, ValueError):
        return False


class DiscogsLibraryService:
    """Loads collection and wantlist releases and expands them into tracks."""

    # Releases expanded in parallel, the discogs-api endpoint dislikes bursts
    EXPAND_CONCURRENCY = 3

    def __init__(
        self,
        client: IDiscogsClient,
        release_fetcher: CachedReleaseFetcher,
        rng: random.Random | None = None,
    ) -> None:
        self._client = client
        self._release_fetcher = release_fetcher
        self._rng = rng or random.Random()

    def release_to_track(self, item: dict[str, Any], source: TrackSource) -> Track:
        """One Track standing for the whole release (id ``{source}-{releaseId}``)."""
        info = _release_info(item)
        return Track(
            id=f"{source.value}-{item.get('id') or info.release_id}",
            title=info.album,
            artist=info.artist,
            source=source,
            album=info.album,
            year=info.year,
            genre=info.genre,
            label=info.label,
            duration=DEFAULT_DURATION,
            cover_url=info.cover_url,
            discogs_release_id=info.release_id or None,
        )

    async def expand_release(self, item: dict[str, Any], source: TrackSource) -> list[Track]:
        """Fetch a release's tracklist and build one Track per playable entry.

        Headings/index entries (type_ other than "track") and untitled entries are skipped.
        """
        info = _release_info(item)
        details = await self._release_fetcher.get(info.release_id)
        tracklist = (details or {}).get("tracklist")
        if not isinstance(tracklist, list):
            return []

        tracks: list[Track] = []
        idx = 0
        for entry in tracklist:
            if not isinstance(entry, dict):
                continue
            entry_type = entry.get("type_")
            if entry_type and entry_type != "track":
                continue
            title = (entry.get("title") or "").strip()
            if not title:
                continue

            position = (entry.get("position") or "").strip() or str(idx + 1)
            duration = parse_discogs_duration(entry.get("duration"))
            entry_artists = entry.get("artists") or []
            artist_raw = (entry_artists[0].get("name") if entry_artists else None) or info.artist
            tracks.append(
                Track(
                    id=f"{source.value}-{info.release_id}-{position}",
                    title=title,
                    artist=strip_artist_numbering(artist_raw or "Unknown Artist"),
                    source=source,
                    album=info.album,
                    year=info.year,
                    genre=info.genre,
                    label=info.label,
                    duration=DEFAULT_DURATION if duration is None else duration,
                    cover_url=info.cover_url,
                    discogs_release_id=info.release_id,
                    discogs_track_position=position,
                    discogs_track_index=idx,
                )
            )
            idx += 1
        return tracks

    async def fetch_collection(self, page: int = 1, per_page: int = 50) -> LibraryPage:
        data = await self._client.fetch_collection(page=page, per_page=per_page)
        tracks = [
            self.release_to_track(item, TrackSource.COLLECTION)
            for item in data.get("releases") or []
        ]
        return LibraryPage(tracks=tracks, has_more=_has_more(data.get("pagination")))

    async def fetch_wantlist(self, page: int = 1, per_page: int = 50) -> LibraryPage:
        data = await self._client.fetch_wantlist(page=page, per_page=per_page)
        tracks = [
            self.release_to_track(item, TrackSource.WANTLIST) for item in data.get("wants") or []
        ]
        return LibraryPage(tracks=tracks, has_more=_has_more(data.get("pagination")))

    async def _expand_safely(self, item: dict[str, Any], source: TrackSource) -> list[Track]:
        try:
            return await self.expand_release(item, source)
        except ExternalServiceError as e:
            logger.warning("Skipping release %s: %s", item.get("id"), e.message)
            return []

    async def fetch_all_tracks(self, max_per_source: int = 50) -> list[Track]:
        """First page of collection and wantlist, expanded per track, shuffled."""
        collection_raw, wantlist_raw = await asyncio.gather(
            self._client.fetch_collection(page=1, per_page=max_per_source),
            self._client.fetch_wantlist(page=1, per_page=max_per_source),
        )
        releases: list[tuple[dict[str, Any], TrackSource]] = [
            (item, TrackSource.COLLECTION) for item in collection_raw.get("releases") or []
        ] + [(item, TrackSource.WANTLIST) for item in wantlist_raw.get("wants") or []]

        expanded: list[Track] = []
        for start in range(0, len(releases), self.EXPAND_CONCURRENCY):
            batch = releases[start : start + self.EXPAND_CONCURRENCY]
            results = await asyncio.gather(
                *(self._expand_safely(item, source) for item, source in batch)
            )
            for tracks in results:
                expanded.extend(tracks)

        self._rng.shuffle(expanded)
        logger.info(
            "Loaded %d tracks from %d Discogs releases", len(expanded), len(releases)
        )
        return expanded
