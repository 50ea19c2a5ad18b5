"""Fixtures for API tests: an app without the lifespan and a mocked radio session."""

import random
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi import FastAPI

from discogs_radio.api.exception_handlers import register_exception_handlers
from discogs_radio.api.routers import api_router
from discogs_radio.application.services.media_resolution import MediaResolutionService
from discogs_radio.application.services.playback_session import PlaybackSession
from discogs_radio.application.services.radio_session import RadioSession
from discogs_radio.application.services.track_store import TrackStore
from discogs_radio.domain.entities import ResolvedMedia, TrackSource
from discogs_radio.domain.ports import IPreferenceStore


@pytest.fixture
def store(make_track) -> TrackStore:
    return TrackStore(
        [
            make_track("a", artist="A", title="First"),
            make_track("b", artist="B", title="Second", source=TrackSource.WANTLIST),
            make_track("c", artist="C", title="Third"),
        ]
    )


@pytest.fixture
def resolver() -> AsyncMock:
    mock = AsyncMock(spec=MediaResolutionService)
    mock.search_rate_limited = False
    mock.resolve_media_for_track.return_value = ResolvedMedia.youtube("vid00000001")
    return mock


@pytest.fixture
def preferences() -> AsyncMock:
    mock = AsyncMock(spec=IPreferenceStore)
    mock.get_disliked_ids.return_value = set()
    return mock


@pytest.fixture
async def playback(store, resolver, preferences):
    session = PlaybackSession(
        store,
        resolver,
        preferences=preferences,
        resolve_timeout=0.5,
        prefetch_count=0,
        shuffle=False,
        rng=random.Random(0),
    )
    await session.start()
    yield session
    await session.close()


@pytest.fixture
def radio(store, playback) -> AsyncMock:
    """RadioSession double wired to a real store and playback session."""
    mock = AsyncMock(spec=RadioSession)
    mock.store = store
    mock.playback = playback
    mock.search_url = MagicMock(
        side_effect=lambda track_id: f"https://www.youtube.com/results?search_query={track_id}"
    )
    mock.verifier = MagicMock()
    mock.verifier.get_stats.return_value = {"running": True, "processing": False, "sweeps": 1}
    mock.cover_worker = MagicMock()
    mock.cover_worker.get_stats.return_value = {"running": False, "pending": 0}
    mock.get_stats = MagicMock(return_value={"tracks": len(store)})
    return mock


@pytest.fixture
def app(radio) -> FastAPI:
    application = FastAPI()
    register_exception_handlers(application)
    application.include_router(api_router, prefix="/api")
    application.state.session = radio
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
