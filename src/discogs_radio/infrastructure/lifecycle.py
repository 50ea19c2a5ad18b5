"""Application lifecycle management for startup and shutdown tasks.

This module holds the FastAPI lifespan context manager plus ``build_radio_session``, which
wires every collaborator of the radio session from settings. Everything the routes need ends
up on ``app.state``: db, session, verifier.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI

from discogs_radio.application.cache import TrackSnapshotCache, YouTubeSearchCache
from discogs_radio.application.services.csv_import import CSVCollectionService
from discogs_radio.application.services.discogs_library import DiscogsLibraryService
from discogs_radio.application.services.media_resolution import MediaResolutionService
from discogs_radio.application.services.playback_session import PlaybackSession
from discogs_radio.application.services.radio_session import RadioSession
from discogs_radio.application.services.resolvers import (
    CachedReleaseFetcher,
    CoverArtService,
    DirectAudioResolver,
    DiscogsVideoResolver,
    SavedMediaResolver,
    YouTubeSearchResolver,
)
from discogs_radio.application.services.track_cache_service import (
    TrackCacheService,
    resolve_owner_key,
)
from discogs_radio.application.services.track_store import TrackStore
from discogs_radio.application.workers import (
    CoverArtWorker,
    create_background_verifier_worker,
)
from discogs_radio.config import Settings, get_settings
from discogs_radio.domain.entities import Track
from discogs_radio.infrastructure.integrations import (
    DiscogsApiClient,
    DiscogsPublicClient,
    EdgeFunctionClient,
    HttpClientPool,
    InvidiousAudioBackend,
    YouTubeSearchClient,
    YtDlpAudioBackend,
)
from discogs_radio.infrastructure.observability import configure_logging
from discogs_radio.infrastructure.persistence import (
    CoverArtRepository,
    Database,
    JsonPreferenceStore,
    TrackCacheRepository,
    TrackMediaRepository,
)

logger = logging.getLogger(__name__)


# Hey future me - this is the ONE place that knows every concrete class. Services only see
# ports, so tests build a RadioSession from mocks instead of going through here. Without a
# Discogs username + token pair we run in CSV-only mode: no DiscogsApiClient, the release
# fetcher reports unavailable and the library loader stays None.
def build_radio_session(settings: Settings, db: Database) -> RadioSession:
    """Create the radio session and all of its collaborators."""
    edge = EdgeFunctionClient(settings.edge_functions)

    discogs_client = None
    if settings.discogs_username and settings.discogs_access_token:
        discogs_client = DiscogsApiClient(
            edge,
            username=settings.discogs_username,
            access_token=settings.discogs_access_token,
            access_token_secret=settings.discogs_access_token_secret,
        )
    else:
        logger.info("No Discogs credentials configured, running in CSV-only mode")

    release_fetcher = CachedReleaseFetcher(discogs_client)
    saved_media = SavedMediaResolver(TrackMediaRepository(db), settings.discogs_username)
    discogs_videos = DiscogsVideoResolver(release_fetcher)
    search_cache = YouTubeSearchCache(ttl_seconds=settings.resolver.search_cache_ttl_seconds)
    youtube_search = YouTubeSearchResolver(
        YouTubeSearchClient(edge),
        search_cache,
        max_results=settings.resolver.search_max_results,
        min_interval=settings.resolver.min_search_interval,
    )
    resolver = MediaResolutionService(
        saved_media,
        discogs_videos,
        youtube_search,
        alternate_max_results=settings.resolver.alternate_search_max_results,
    )
    direct_audio = DirectAudioResolver([YtDlpAudioBackend(edge), InvidiousAudioBackend(edge)])
    cover_art = CoverArtService(CoverArtRepository(db), DiscogsPublicClient(edge))

    store = TrackStore()
    playback_settings = settings.playback
    playback = PlaybackSession(
        store,
        resolver,
        preferences=JsonPreferenceStore(settings.cache.preferences_path),
        resolve_timeout=playback_settings.resolve_timeout_seconds,
        prefetch_count=playback_settings.prefetch_count,
        skip_seconds=playback_settings.skip_seconds,
        bandcamp_min_seconds=playback_settings.bandcamp_min_seconds,
        shuffle=playback_settings.shuffle_on_start,
        scrub_hold_delay=playback_settings.scrub_hold_delay_ms / 1000,
        scrub_repeat_interval=playback_settings.scrub_repeat_ms / 1000,
    )

    def queue_provider() -> tuple[list[Track], str | None]:
        current = playback.current_track
        return playback.playlist, current.id if current is not None else None

    verifier = create_background_verifier_worker(
        store,
        resolver,
        youtube_search=youtube_search,
        queue_provider=queue_provider,
        cover_art=cover_art,
        cooldown_seconds=settings.verifier.cooldown_seconds,
        poll_interval_seconds=settings.verifier.poll_interval_seconds,
        lookahead=settings.verifier.lookahead,
        retry_non_working_per_sweep=settings.verifier.retry_non_working_per_sweep,
    )

    owner_key = resolve_owner_key(settings.discogs_username, settings.cache.owner_key_path)
    track_cache = TrackCacheService(
        TrackCacheRepository(db),
        owner_key,
        debounce_seconds=settings.cache.track_cache_debounce_seconds,
    )

    return RadioSession(
        store=store,
        playback=playback,
        resolver=resolver,
        youtube_search=youtube_search,
        saved_media=saved_media,
        release_fetcher=release_fetcher,
        direct_audio=direct_audio,
        csv_collection=CSVCollectionService(settings.cache.csv_store_path),
        track_cache=track_cache,
        snapshot_cache=TrackSnapshotCache(
            settings.cache.snapshot_dir, ttl_seconds=settings.cache.snapshot_ttl_seconds
        ),
        cover_worker=CoverArtWorker(
            store, cover_art, request_delay=settings.cache.cover_scrape_delay_seconds
        ),
        verifier=verifier,
        library=(
            DiscogsLibraryService(discogs_client, release_fetcher)
            if discogs_client is not None
            else None
        ),
        username=settings.discogs_username,
        first_track_timeout=playback_settings.resolve_timeout_seconds,
    )


# Listen future me, everything before `yield` runs at STARTUP, everything after at SHUTDOWN.
# The finally block ALWAYS runs, so a half-finished startup still releases what it opened.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup: logging, directories, database tables, radio session, background verifier.
    Shutdown: verifier, session (flushes the track cache and writes the snapshot), database,
    HTTP pool.
    """
    settings = get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    verifier_task: asyncio.Task[None] | None = None
    try:
        settings.ensure_directories()
        logger.info("Storage directories initialized")

        db = Database(settings)
        app.state.db = db
        await db.create_tables()
        logger.info("Database initialized: %s", settings.database.url)

        session = build_radio_session(settings, db)
        app.state.session = session
        app.state.verifier = session.verifier

        await session.start()
        logger.info("Radio session started with %d tracks", len(session.store))

        if settings.verifier.enabled:
            verifier_task = asyncio.create_task(session.verifier.start())
            logger.info("Background verifier started")
        else:
            logger.info("Background verifier disabled")

        yield

    except Exception as e:
        logger.exception("Error during application startup: %s", e)
        raise
    finally:
        logger.info("Shutting down application")

        # 1. Stop the verifier loop
        if verifier_task is not None:
            try:
                app.state.verifier.stop()
                try:
                    await asyncio.wait_for(
                        verifier_task, timeout=settings.observability.shutdown_timeout
                    )
                except TimeoutError:
                    verifier_task.cancel()
                    with suppress(asyncio.CancelledError):
                        await verifier_task
                logger.info("Background verifier stopped")
            except Exception as e:
                logger.exception("Error stopping background verifier: %s", e)

        # 2. Close the session (pending track cache writes, snapshot)
        try:
            if hasattr(app.state, "session"):
                await app.state.session.close()
                logger.info("Radio session closed")
        except Exception as e:
            logger.exception("Error closing radio session: %s", e)

        # 3. Close database connection
        try:
            if hasattr(app.state, "db"):
                await app.state.db.close()
                logger.info("Database connection closed")
        except Exception as e:
            logger.exception("Error closing database: %s", e)

        # 4. Close HTTP client pool
        try:
            await HttpClientPool.close()
        except Exception as e:
            logger.exception("Error closing HTTP client pool: %s", e)
