"""Tests for application settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from discogs_radio.config import Settings


class TestEnvironment:
    """Environment variables with prefix and nested delimiter."""

    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.discogs_username == ""
        assert settings.verifier.retry_non_working_per_sweep is True
        assert settings.playback.skip_seconds == 5
        assert settings.resolver.alternate_search_max_results == 8

    def test_nested_override(self, monkeypatch) -> None:
        monkeypatch.setenv("DISCOGS_RADIO_VERIFIER__COOLDOWN_SECONDS", "5")
        monkeypatch.setenv("DISCOGS_RADIO_DISCOGS_USERNAME", "digger")

        settings = Settings(_env_file=None)

        assert settings.verifier.cooldown_seconds == 5.0
        assert settings.discogs_username == "digger"

    def test_invalid_value_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("DISCOGS_RADIO_PLAYBACK__SKIP_SECONDS", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestSqlitePath:
    """get_sqlite_db_path()."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("sqlite+aiosqlite:///./data/radio.db", Path("./data/radio.db")),
            ("sqlite+aiosqlite:///:memory:", None),
            ("postgresql+asyncpg://u:p@db/radio", None),
        ],
    )
    def test_path(self, url: str, expected: Path | None) -> None:
        settings = Settings(_env_file=None, database={"url": url})

        assert settings.get_sqlite_db_path() == expected


class TestEnsureDirectories:
    def test_creates_every_parent(self, tmp_path) -> None:
        settings = Settings(
            _env_file=None,
            database={"url": f"sqlite+aiosqlite:///{tmp_path}/db/radio.db"},
            cache={
                "snapshot_dir": tmp_path / "snapshots",
                "csv_store_path": tmp_path / "csv" / "store.json",
                "owner_key_path": tmp_path / "owner" / "key",
                "preferences_path": tmp_path / "prefs" / "p.json",
            },
        )

        settings.ensure_directories()

        for name in ("db", "snapshots", "csv", "owner", "prefs"):
            assert (tmp_path / name).is_dir()
