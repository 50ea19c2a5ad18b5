"""Discogs CSV export import.

Hey future me - Discogs lets users export their collection/wantlist as CSV. Headers vary a bit
between exports ("Catalog#" vs "CatalogNumber", "release_id" vs "Release ID"), so header matching
ignores case and punctuation. Each row becomes ONE track (the release itself, album = title),
the per-track tracklist only exists via the API.
"""

import asyncio
import csv
import json
import logging
import os
import re
import tempfile
from pathlib import Path

from discogs_radio.domain.entities import (
    DEFAULT_DURATION,
    PLACEHOLDER_COVER,
    Track,
    TrackSource,
)
from discogs_radio.domain.exceptions import CSVImportError

logger = logging.getLogger(__name__)

GENRE_KEYWORDS = (
    "Rock",
    "Pop",
    "Jazz",
    "Electronic",
    "Hip Hop",
    "Classical",
    "Folk",
    "Metal",
    "Soul",
    "Funk",
    "Blues",
    "Country",
    "Reggae",
)

_HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "artist": ("Artist",),
    "title": ("Title", "Album"),
    "label": ("Label",),
    "released": ("Released", "Year"),
    "release_id": ("release_id", "releaseid", "Release ID"),
    "catalog": ("Catalog#", "catalog", "CatalogNumber"),
    "format": ("Format",),
}

_YEAR_RE = re.compile(r"\b(19|20)\d{2}\b")
_ARTIST_NUMBERING_RE = re.compile(r"\s*\(\d+\)$")


def _normalize_header(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def _column_index(headers: list[str], aliases: tuple[str, ...]) -> int:
    normalized = [_normalize_header(header) for header in headers]
    for alias in aliases:
        wanted = _normalize_header(alias)
        if wanted in normalized:
            return normalized.index(wanted)
    return -1


def strip_artist_numbering(artist: str) -> str:
    """Drop Discogs disambiguation suffixes like "Prince (2)"."""
    return _ARTIST_NUMBERING_RE.sub("", artist)


def genre_from_format(format_value: str) -> str:
    """First format part mentioning a known genre keyword, else "Unknown"."""
    for part in (piece.strip() for piece in format_value.split(",")):
        lowered = part.lower()
        if any(keyword.lower() in lowered for keyword in GENRE_KEYWORDS):
            return part
    return "Unknown"


def _parse_release_id(value: str) -> int:
    match = re.match(r"\s*(\d+)", value or "")
    return int(match.group(1)) if match else 0


def parse_discogs_csv(content: str, source: TrackSource | str) -> list[Track]:
    """Parse a Discogs CSV export into tracks.

    Raises:
        CSVImportError: empty file, missing Artist/Title columns, or no usable rows
    """
    source = TrackSource(source)
    lines = [line for line in content.lstrip("\ufeff").splitlines() if line.strip()]
    if not lines:
        raise CSVImportError("CSV file is empty")

    rows = list(csv.reader(lines))
    headers = rows[0]
    columns = {field: _column_index(headers, aliases) for field, aliases in _HEADER_ALIASES.items()}
    if columns["artist"] < 0 or columns["title"] < 0:
        raise CSVImportError("CSV must contain Artist and Title columns")

    def cell(values: list[str], field: str) -> str:
        idx = columns[field]
        if idx < 0 or idx >= len(values):
            return ""
        return values[idx].strip()

    tracks: list[Track] = []
    for row_number, values in enumerate(rows[1:], start=1):
        artist = cell(values, "artist") or "Unknown Artist"
        title = cell(values, "title") or "Unknown Title"
        release_id = _parse_release_id(cell(values, "release_id"))
        year_match = _YEAR_RE.search(cell(values, "released"))
        format_value = cell(values, "format")

        tracks.append(
            Track(
                id=f"csv-{source.value}-{release_id or row_number}",
                title=title,
                artist=strip_artist_numbering(artist),
                source=source,
                album=title,
                year=int(year_match.group(0)) if year_match else 0,
                genre=genre_from_format(format_value) if format_value else "Unknown",
                label=cell(values, "label") or "Unknown",
                duration=DEFAULT_DURATION,
                cover_url=PLACEHOLDER_COVER,
                discogs_release_id=release_id or None,
            )
        )

    if not tracks:
        raise CSVImportError("No valid tracks found in CSV file")
    logger.info("Parsed %d %s tracks from CSV", len(tracks), source.value)
    return tracks


class CSVCollectionService:
    """Keeps the imported collection and wantlist lists, persisted to a local JSON file."""

    def __init__(self, store_path: Path) -> None:
        self._store_path = Path(store_path)
        self._lists: dict[TrackSource, list[Track]] = {
            TrackSource.COLLECTION: [],
            TrackSource.WANTLIST: [],
        }
        self._load()

    @property
    def collection(self) -> list[Track]:
        return list(self._lists[TrackSource.COLLECTION])

    @property
    def wantlist(self) -> list[Track]:
        return list(self._lists[TrackSource.WANTLIST])

    @property
    def all_tracks(self) -> list[Track]:
        return self.collection + self.wantlist

    def _load(self) -> None:
        if not self._store_path.exists():
            return
        try:
            payload = json.loads(self._store_path.read_text(encoding="utf-8"))
            for source in self._lists:
                self._lists[source] = [
                    Track.from_dict(item) for item in payload.get(source.value, [])
                ]
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error("Failed to parse stored CSV collection, discarding it: %s", e)
            for source in self._lists:
                self._lists[source] = []
            self._store_path.unlink(missing_ok=True)

    def _persist(self) -> None:
        payload = {
            source.value: [track.to_dict() for track in tracks]
            for source, tracks in self._lists.items()
        }
        try:
            self._store_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(suffix=".tmp", dir=self._store_path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle)
            os.replace(tmp_path, self._store_path)
        except OSError as e:
            logger.warning("Could not persist CSV collection: %s", e)

    def import_content(self, content: str, source: TrackSource | str) -> list[Track]:
        """Parse CSV text and replace the stored list for that source."""
        source = TrackSource(source)
        tracks = parse_discogs_csv(content, source)
        self._lists[source] = tracks
        self._persist()
        return tracks

    async def import_file(self, path: Path, source: TrackSource | str) -> list[Track]:
        """Read a CSV file off the event loop and import it."""
        content = await asyncio.to_thread(Path(path).read_text, encoding="utf-8-sig")
        return self.import_content(content, source)

    def update_track(self, track: Track) -> bool:
        """Replace a stored track by id (keeps resolved media across restarts)."""
        for tracks in self._lists.values():
            for idx, existing in enumerate(tracks):
                if existing.id == track.id:
                    tracks[idx] = track
                    self._persist()
                    return True
        return False

    def clear(self, source: TrackSource | None = None) -> None:
        for key in self._lists:
            if source is None or key == source:
                self._lists[key] = []
        self._persist()
