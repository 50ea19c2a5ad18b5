"""Repository implementations for the server-side cache tables."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from discogs_radio.domain.entities import (
    CoverArtRecord,
    PlaybackProvider,
    SavedMediaLink,
    TrackCacheEntry,
    TrackSource,
    WorkingStatus,
)
from discogs_radio.domain.ports import (
    ICoverArtRepository,
    ITrackCacheRepository,
    ITrackMediaRepository,
)

from .database import Database
from .models import (
    ReleaseCoverArtModel,
    TrackCacheModel,
    TrackMediaModel,
    ensure_utc_aware,
    utc_now,
)

logger = logging.getLogger(__name__)

COVER_COLUMNS = ("cover1", "cover2", "cover3", "cover4")
VIDEO_COLUMNS = ("youtube1", "youtube2")


# Hey future me - these repos are long-lived (the resolvers hold them for the whole process), so
# unlike per-request repos they open their own short session_scope per call. Every one of them
# treats the database as a cache: SQLAlchemyError is logged and turned into "nothing cached",
# never raised into the resolution path. Upserts use SQLite's ON CONFLICT DO UPDATE.


class TrackMediaRepository(ITrackMediaRepository):
    """Saved youtube / bandcamp links per (username, release, position, provider)."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_for_release(self, username: str, release_id: int) -> list[SavedMediaLink]:
        stmt = select(TrackMediaModel).where(
            TrackMediaModel.username == username,
            TrackMediaModel.discogs_release_id == release_id,
        )
        try:
            async with self._db.session_scope() as session:
                result = await session.execute(stmt)
                models = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning("track_media lookup failed for release %s: %s", release_id, e)
            return []

        links: list[SavedMediaLink] = []
        for model in models:
            try:
                provider = PlaybackProvider(model.provider)
            except ValueError:
                logger.debug("Skipping track_media row with provider %r", model.provider)
                continue
            links.append(
                SavedMediaLink(
                    provider=provider,
                    youtube_id=model.youtube_id,
                    bandcamp_embed_src=model.bandcamp_embed_src,
                    bandcamp_url=model.bandcamp_url,
                    track_position=model.track_position or None,
                )
            )
        return links

    async def upsert(self, username: str, release_id: int, links: list[SavedMediaLink]) -> None:
        if not links:
            return
        rows = [
            {
                "username": username,
                "discogs_release_id": release_id,
                "track_position": link.track_position or "",
                "provider": PlaybackProvider(link.provider).value,
                "youtube_id": link.youtube_id,
                "bandcamp_embed_src": link.bandcamp_embed_src,
                "bandcamp_url": link.bandcamp_url,
                "created_at": utc_now(),
                "updated_at": utc_now(),
            }
            for link in links
        ]
        stmt = sqlite_insert(TrackMediaModel).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["username", "discogs_release_id", "track_position", "provider"],
            set_={
                "youtube_id": stmt.excluded.youtube_id,
                "bandcamp_embed_src": stmt.excluded.bandcamp_embed_src,
                "bandcamp_url": stmt.excluded.bandcamp_url,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            async with self._db.session_scope() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.warning("track_media upsert failed for release %s: %s", release_id, e)


def _entry_from_model(model: TrackCacheModel) -> TrackCacheEntry:
    return TrackCacheEntry(
        owner_key=model.owner_key,
        source=TrackSource(model.source),
        track_id=model.track_id,
        artist=model.artist,
        title=model.title,
        release_id=model.release_id,
        track_position=model.track_position,
        album=model.album,
        genre=model.genre,
        label=model.label,
        year=model.year,
        country=model.country,
        covers=[getattr(model, column) for column in COVER_COLUMNS],
        videos=[getattr(model, column) for column in VIDEO_COLUMNS],
        working_status=WorkingStatus(model.working_status),
    )


def _row_from_entry(entry: TrackCacheEntry) -> dict:
    row = {
        "owner_key": entry.owner_key,
        "source": TrackSource(entry.source).value,
        "track_id": entry.track_id,
        "artist": entry.artist,
        "title": entry.title,
        "release_id": entry.release_id,
        "track_position": entry.track_position,
        "album": entry.album,
        "genre": entry.genre,
        "label": entry.label,
        "year": entry.year,
        "country": entry.country,
        "working_status": WorkingStatus(entry.working_status).value,
        "updated_at": utc_now(),
    }
    for index, column in enumerate(COVER_COLUMNS):
        row[column] = entry.covers[index] if index < len(entry.covers) else None
    for index, column in enumerate(VIDEO_COLUMNS):
        row[column] = entry.videos[index] if index < len(entry.videos) else None
    return row


class TrackCacheRepository(ITrackCacheRepository):
    """Track metadata rows partitioned by owner key."""

    # SQLite caps bound parameters per statement; ~20 columns per row keeps us well below it
    BATCH_SIZE = 200

    def __init__(self, db: Database) -> None:
        self._db = db

    async def load(
        self, owner_key: str, source: TrackSource | None = None
    ) -> list[TrackCacheEntry]:
        stmt = select(TrackCacheModel).where(TrackCacheModel.owner_key == owner_key)
        if source is not None:
            stmt = stmt.where(TrackCacheModel.source == TrackSource(source).value)
        try:
            async with self._db.session_scope() as session:
                result = await session.execute(stmt)
                models = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning("track_cache load failed: %s", e)
            return []

        entries: list[TrackCacheEntry] = []
        for model in models:
            try:
                entries.append(_entry_from_model(model))
            except ValueError as e:
                logger.debug("Skipping malformed track_cache row %s: %s", model.track_id, e)
        return entries

    async def upsert(self, entries: list[TrackCacheEntry]) -> None:
        if not entries:
            return
        try:
            async with self._db.session_scope() as session:
                for start in range(0, len(entries), self.BATCH_SIZE):
                    rows = [
                        _row_from_entry(entry)
                        for entry in entries[start : start + self.BATCH_SIZE]
                    ]
                    stmt = sqlite_insert(TrackCacheModel).values(rows)
                    updatable = {
                        column: stmt.excluded[column]
                        for column in rows[0]
                        if column not in ("owner_key", "track_id")
                    }
                    stmt = stmt.on_conflict_do_update(
                        index_elements=["owner_key", "track_id"], set_=updatable
                    )
                    await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.warning("track_cache upsert of %d rows failed: %s", len(entries), e)


def _record_from_model(model: ReleaseCoverArtModel) -> CoverArtRecord:
    return CoverArtRecord(
        release_id=model.release_id,
        cover_url=model.cover_url,
        thumb_url=model.thumb_url,
        # SQLite hands back naive datetimes
        updated_at=ensure_utc_aware(model.updated_at) if model.updated_at else None,
    )


class CoverArtRepository(ICoverArtRepository):
    """release_cover_art table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, release_id: int) -> CoverArtRecord | None:
        try:
            async with self._db.session_scope() as session:
                model = await session.get(ReleaseCoverArtModel, release_id)
                return _record_from_model(model) if model is not None else None
        except SQLAlchemyError as e:
            logger.warning("Cover art lookup failed for release %s: %s", release_id, e)
            return None

    async def get_many(self, release_ids: list[int]) -> dict[int, CoverArtRecord]:
        if not release_ids:
            return {}
        stmt = select(ReleaseCoverArtModel).where(
            ReleaseCoverArtModel.release_id.in_(release_ids)
        )
        try:
            async with self._db.session_scope() as session:
                result = await session.execute(stmt)
                return {
                    model.release_id: _record_from_model(model)
                    for model in result.scalars().all()
                }
        except SQLAlchemyError as e:
            logger.warning("Batch cover art lookup failed: %s", e)
            return {}

    async def upsert(self, record: CoverArtRecord) -> None:
        stmt = sqlite_insert(ReleaseCoverArtModel).values(
            release_id=record.release_id,
            cover_url=record.cover_url,
            thumb_url=record.thumb_url,
            updated_at=utc_now(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["release_id"],
            set_={
                "cover_url": stmt.excluded.cover_url,
                "thumb_url": stmt.excluded.thumb_url,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            async with self._db.session_scope() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.warning("Cover art upsert failed for release %s: %s", record.release_id, e)
