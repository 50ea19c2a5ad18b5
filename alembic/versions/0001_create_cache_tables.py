"""create cache tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

Hey future me - the three server-side cache tables:

- track_media: saved youtube / bandcamp links per (username, release, position, provider)
- track_cache: per-owner track metadata (covers, video ids, working status)
- release_cover_art: one cover per Discogs release, never expires

Idempotent like the rest of our migrations: tables that already exist (e.g. created by
Database.create_tables() on a dev box) are skipped.
"""

import logging

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

logger = logging.getLogger("alembic.runtime.migration")


def upgrade() -> None:
    conn = op.get_bind()
    existing = set(sa.inspect(conn).get_table_names())

    if "track_media" in existing:
        logger.info("Table track_media already exists - skipping creation")
    else:
        op.create_table(
            "track_media",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("username", sa.String(255), nullable=False),
            sa.Column("discogs_release_id", sa.Integer(), nullable=False),
            # "" instead of NULL so the unique constraint holds on SQLite
            sa.Column("track_position", sa.String(20), nullable=False, server_default=""),
            sa.Column("provider", sa.String(20), nullable=False),
            sa.Column("youtube_id", sa.String(32), nullable=True),
            sa.Column("bandcamp_embed_src", sa.Text(), nullable=True),
            sa.Column("bandcamp_url", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint(
                "username",
                "discogs_release_id",
                "track_position",
                "provider",
                name="uq_track_media_user_release_position_provider",
            ),
        )
        op.create_index(
            "ix_track_media_user_release", "track_media", ["username", "discogs_release_id"]
        )

    if "track_cache" in existing:
        logger.info("Table track_cache already exists - skipping creation")
    else:
        op.create_table(
            "track_cache",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("owner_key", sa.String(255), nullable=False),
            sa.Column("source", sa.String(20), nullable=False),
            sa.Column("track_id", sa.String(255), nullable=False),
            sa.Column("artist", sa.String(512), nullable=False),
            sa.Column("title", sa.String(512), nullable=False),
            sa.Column("release_id", sa.Integer(), nullable=True),
            sa.Column("track_position", sa.String(20), nullable=True),
            sa.Column("album", sa.String(512), nullable=True),
            sa.Column("genre", sa.String(255), nullable=True),
            sa.Column("label", sa.String(255), nullable=True),
            sa.Column("year", sa.Integer(), nullable=True),
            sa.Column("country", sa.String(100), nullable=True),
            sa.Column("cover1", sa.Text(), nullable=True),
            sa.Column("cover2", sa.Text(), nullable=True),
            sa.Column("cover3", sa.Text(), nullable=True),
            sa.Column("cover4", sa.Text(), nullable=True),
            sa.Column("youtube1", sa.String(32), nullable=True),
            sa.Column("youtube2", sa.String(32), nullable=True),
            sa.Column(
                "working_status", sa.String(20), nullable=False, server_default="pending"
            ),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint("owner_key", "track_id", name="uq_track_cache_owner_track"),
        )
        op.create_index("ix_track_cache_owner_source", "track_cache", ["owner_key", "source"])

    if "release_cover_art" in existing:
        logger.info("Table release_cover_art already exists - skipping creation")
    else:
        op.create_table(
            "release_cover_art",
            sa.Column("release_id", sa.Integer(), primary_key=True, autoincrement=False),
            sa.Column("cover_url", sa.Text(), nullable=True),
            sa.Column("thumb_url", sa.Text(), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        )


def downgrade() -> None:
    op.drop_table("release_cover_art")
    op.drop_index("ix_track_cache_owner_source", table_name="track_cache")
    op.drop_table("track_cache")
    op.drop_index("ix_track_media_user_release", table_name="track_media")
    op.drop_table("track_media")
