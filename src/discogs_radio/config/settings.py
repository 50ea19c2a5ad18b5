"""Application settings.

Hey future me - every tunable lives here, grouped into nested sections so call sites read like
``settings.verifier.cooldown_seconds``. Values come from environment variables with the
DISCOGS_RADIO_ prefix and "__" as the nesting delimiter, e.g.
DISCOGS_RADIO_VERIFIER__COOLDOWN_SECONDS=5 or DISCOGS_RADIO_DATABASE__URL=sqlite+aiosqlite:///x.db.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Server-side cache tables (track media, track cache, cover art)."""

    url: str = Field(
        default="sqlite+aiosqlite:///./data/discogs_radio.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(default=False, description="Log every SQL statement")
    pool_pre_ping: bool = Field(default=True)
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout: int = Field(default=30, ge=1)
    pool_recycle: int = Field(default=1800, ge=1)


class EdgeFunctionSettings(BaseModel):
    """Remote RPC endpoints (youtube-search, yt-dlp-audio, invidious-audio, discogs-*)."""

    base_url: str = Field(
        default="http://localhost:54321/functions/v1",
        description="Base URL all edge functions are mounted under",
    )
    api_key: str = Field(default="", description="Bearer key sent with every call")
    timeout: float = Field(default=30.0, gt=0)


class ResolverSettings(BaseModel):
    """Media resolution tuning."""

    search_max_results: int = Field(default=5, ge=1, le=50)
    alternate_search_max_results: int = Field(default=8, ge=1, le=50)
    min_search_interval: float = Field(
        default=0.5, ge=0, description="Seconds between two YouTube searches"
    )
    search_cache_ttl_seconds: int = Field(default=6 * 3600, ge=1)


class VerifierSettings(BaseModel):
    """Background verifier loop."""

    enabled: bool = True
    cooldown_seconds: float = Field(default=2.0, ge=0)
    poll_interval_seconds: float = Field(default=3.0, gt=0)
    lookahead: int = Field(default=3, ge=0)
    retry_non_working_per_sweep: bool = Field(
        default=True,
        description="Clear verified markers of non_working tracks when a sweep ends",
    )


class PlaybackSettings(BaseModel):
    """Playback session behaviour."""

    skip_seconds: int = Field(default=5, ge=1)
    resolve_timeout_seconds: float = Field(default=3.0, gt=0)
    prefetch_count: int = Field(default=4, ge=0)
    shuffle_on_start: bool = True
    bandcamp_min_seconds: int = Field(default=5, ge=1)
    scrub_hold_delay_ms: int = Field(default=300, ge=0)
    scrub_repeat_ms: int = Field(default=100, ge=10)


class CacheSettings(BaseModel):
    """Local (per-device) caches."""

    snapshot_dir: Path = Field(default=Path("./data/snapshots"))
    snapshot_ttl_seconds: int = Field(default=30 * 60, ge=1)
    csv_store_path: Path = Field(default=Path("./data/csv_collection.json"))
    owner_key_path: Path = Field(default=Path("./data/owner_key"))
    preferences_path: Path = Field(default=Path("./data/preferences.json"))
    track_cache_debounce_seconds: float = Field(default=0.5, ge=0)
    cover_scrape_delay_seconds: float = Field(default=1.0, ge=0)


class ObservabilitySettings(BaseModel):
    """Logging output."""

    log_json_format: bool = False
    shutdown_timeout: float = Field(default=10.0, gt=0)


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_prefix="DISCOGS_RADIO_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "discogs-radio"
    log_level: str = "INFO"
    discogs_username: str = Field(
        default="", description="Owner of the collection; empty means CSV-only mode"
    )
    discogs_access_token: str = Field(
        default="", description="OAuth token from the Discogs handshake"
    )
    discogs_access_token_secret: str = Field(default="")
    host: str = "127.0.0.1"
    port: int = 8765

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    edge_functions: EdgeFunctionSettings = Field(default_factory=EdgeFunctionSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    verifier: VerifierSettings = Field(default_factory=VerifierSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    # Yo, only sqlite URLs map to a file on disk. Returns None for anything else (postgres,
    # in-memory sqlite) so callers can skip directory setup.
    def get_sqlite_db_path(self) -> Path | None:
        """Return the SQLite database file path, if the URL points at one."""
        url = self.database.url
        if not url.startswith("sqlite") or ":memory:" in url:
            return None
        _, _, path = url.partition(":///")
        return Path(path) if path else None

    def ensure_directories(self) -> None:
        """Create local storage directories."""
        self.cache.snapshot_dir.mkdir(parents=True, exist_ok=True)
        self.cache.csv_store_path.parent.mkdir(parents=True, exist_ok=True)
        self.cache.owner_key_path.parent.mkdir(parents=True, exist_ok=True)
        self.cache.preferences_path.parent.mkdir(parents=True, exist_ok=True)
        db_path = self.get_sqlite_db_path()
        if db_path is not None:
            db_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
