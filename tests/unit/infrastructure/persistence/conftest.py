"""Database fixtures: a throwaway SQLite file per test."""

from pathlib import Path

import pytest

from discogs_radio.config.settings import DatabaseSettings, Settings
from discogs_radio.infrastructure.persistence.database import Database


@pytest.fixture
def db_settings(tmp_path: Path) -> Settings:
    return Settings(database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path}/cache.db"))


@pytest.fixture
async def db(db_settings: Settings):
    database = Database(db_settings)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
async def empty_db(db_settings: Settings):
    """Database without tables, like a server that never ran its migrations."""
    database = Database(db_settings)
    yield database
    await database.close()
