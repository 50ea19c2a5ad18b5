"""Tests for session wiring and the application lifespan."""

import pytest
from fastapi import FastAPI

from discogs_radio.config import Settings
from discogs_radio.infrastructure import lifecycle
from discogs_radio.infrastructure.lifecycle import build_radio_session, lifespan
from discogs_radio.infrastructure.persistence import Database


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database={"url": f"sqlite+aiosqlite:///{tmp_path}/radio.db"},
        cache={
            "snapshot_dir": tmp_path / "snapshots",
            "csv_store_path": tmp_path / "csv.json",
            "owner_key_path": tmp_path / "owner_key",
            "preferences_path": tmp_path / "prefs.json",
        },
        verifier={"enabled": False, "retry_non_working_per_sweep": False},
    )


class TestBuildRadioSession:
    """Wiring from settings."""

    async def test_csv_only_mode_without_credentials(self, settings) -> None:
        db = Database(settings)
        try:
            session = build_radio_session(settings, db)

            assert session.library is None
            assert session.username == ""
            assert session.track_cache.owner_key.startswith("csv-")
            assert session.verifier._retry_non_working is False
        finally:
            await db.close()

    async def test_discogs_mode_with_credentials(self, settings) -> None:
        connected = settings.model_copy(
            update={"discogs_username": "digger", "discogs_access_token": "tok"}
        )
        db = Database(connected)
        try:
            session = build_radio_session(connected, db)

            assert session.library is not None
            assert session.track_cache.owner_key == "digger"
        finally:
            await db.close()


class TestLifespan:
    async def test_startup_and_shutdown(self, settings, mocker) -> None:
        mocker.patch.object(lifecycle, "get_settings", return_value=settings)
        app = FastAPI()

        async with lifespan(app):
            assert app.state.session.playback.playlist == []
            assert app.state.verifier is app.state.session.verifier
            assert (settings.cache.snapshot_dir).is_dir()

        assert settings.get_sqlite_db_path().exists()
