"""SQLAlchemy ORM models for the server-side cache tables."""

from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite drops tzinfo on the way back. Attach UTC before comparing with aware
# datetimes or you get "can't compare offset-naive and offset-aware" TypeErrors.
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Shared metadata registry for all models."""

    pass


# Yo, one row per (user, release, track position, provider). track_position is stored as ""
# instead of NULL for release-wide links, because SQLite treats NULLs as distinct in UNIQUE
# constraints and the upsert would silently insert duplicates.
class TrackMediaModel(Base):
    """Saved provider link (youtube or bandcamp) for a release track."""

    __tablename__ = "track_media"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    discogs_release_id: Mapped[int] = mapped_column(Integer, nullable=False)
    track_position: Mapped[str] = mapped_column(
        String(20), nullable=False, default="", server_default=""
    )
    provider: Mapped[str] = mapped_column(String(20), nullable=False)
    youtube_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    bandcamp_embed_src: Mapped[str | None] = mapped_column(Text, nullable=True)
    bandcamp_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        sa.UniqueConstraint(
            "username",
            "discogs_release_id",
            "track_position",
            "provider",
            name="uq_track_media_user_release_position_provider",
        ),
        Index("ix_track_media_user_release", "username", "discogs_release_id"),
    )


# Hey future me - the flat cover1..4 / youtube1..2 columns mirror the capped lists on
# TrackCacheEntry. Primary entry goes into slot 1, the repository does the list <-> slot mapping.
class TrackCacheModel(Base):
    """Per-owner metadata row of one track."""

    __tablename__ = "track_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_key: Mapped[str] = mapped_column(String(255), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    track_id: Mapped[str] = mapped_column(String(255), nullable=False)

    artist: Mapped[str] = mapped_column(String(512), nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    release_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    track_position: Mapped[str | None] = mapped_column(String(20), nullable=True)
    album: Mapped[str | None] = mapped_column(String(512), nullable=True)
    genre: Mapped[str | None] = mapped_column(String(255), nullable=True)
    label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)

    cover1: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover2: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover3: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover4: Mapped[str | None] = mapped_column(Text, nullable=True)
    youtube1: Mapped[str | None] = mapped_column(String(32), nullable=True)
    youtube2: Mapped[str | None] = mapped_column(String(32), nullable=True)

    working_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", server_default="pending"
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        sa.UniqueConstraint("owner_key", "track_id", name="uq_track_cache_owner_track"),
        Index("ix_track_cache_owner_source", "owner_key", "source"),
    )


class ReleaseCoverArtModel(Base):
    """Cover art of a Discogs release. Release art doesn't change, so no expiry."""

    __tablename__ = "release_cover_art"

    release_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    cover_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumb_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
