"""On-demand resolution endpoints."""

import logging

from fastapi import APIRouter, Depends, Query

from discogs_radio.api.dependencies import get_radio_session
from discogs_radio.api.schemas import (
    DirectAudioResponse,
    MediaLinkRequest,
    ResolvedMediaResponse,
    TrackResponse,
)
from discogs_radio.application.services.radio_session import RadioSession
from discogs_radio.domain.exceptions import EntityNotFoundException

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/tracks/{track_id}", response_model=ResolvedMediaResponse)
async def resolve_track(
    track_id: str,
    prefer_different_from: str | None = Query(
        None, description="YouTube id to avoid (e.g. it failed to embed)"
    ),
    session: RadioSession = Depends(get_radio_session),
) -> ResolvedMediaResponse:
    """Resolve a track through the provider chain and store the result."""
    media = await session.resolve_track(track_id, prefer_different_from=prefer_different_from)
    return ResolvedMediaResponse.from_media(media)


# Yo, this is the explicit user "try again" on a non_working track. It forces a network search
# even when the quota flag is set, so a QuotaExceededError can surface here as a 429.
@router.post("/tracks/{track_id}/retry")
async def retry_track(
    track_id: str, session: RadioSession = Depends(get_radio_session)
) -> dict[str, object]:
    found = await session.retry_track(track_id)
    track = session.store.get(track_id)
    return {
        "found": found,
        "track": TrackResponse.from_track(track).model_dump(mode="json") if track else None,
    }


@router.get("/tracks/{track_id}/direct-audio", response_model=DirectAudioResponse)
async def direct_audio(
    track_id: str, session: RadioSession = Depends(get_radio_session)
) -> DirectAudioResponse:
    """Direct audio stream URL for the track's YouTube video (yt-dlp, then Invidious)."""
    audio = await session.direct_audio_for(track_id)
    if audio is None:
        raise EntityNotFoundException("DirectAudio", track_id)
    return DirectAudioResponse.from_audio(audio)


@router.put("/tracks/{track_id}/media", response_model=TrackResponse)
async def save_media_link(
    track_id: str,
    request: MediaLinkRequest,
    session: RadioSession = Depends(get_radio_session),
) -> TrackResponse:
    """Remember a provider link for the track's release position."""
    await session.save_media_link(track_id, request.to_media())
    track = session.store.get(track_id)
    if track is None:
        raise EntityNotFoundException("Track", track_id)
    return TrackResponse.from_track(track)


@router.get("/tracks/{track_id}/search-url")
async def search_url(
    track_id: str, session: RadioSession = Depends(get_radio_session)
) -> dict[str, str]:
    """YouTube search page for the track, for opening externally."""
    return {"url": session.search_url(track_id)}


@router.post("/caches/reset")
async def reset_caches(session: RadioSession = Depends(get_radio_session)) -> dict[str, bool]:
    """Forget memoized lookups and the quota flag, like a fresh session."""
    await session.reset_caches()
    return {"reset": True}
