"""Playback endpoints: state, transport commands and player events."""

import logging

from fastapi import APIRouter, Depends

from discogs_radio.api.dependencies import get_playback, get_radio_session
from discogs_radio.api.schemas import (
    DirectionRequest,
    DislikeRequest,
    LikeRequest,
    PlayerErrorRequest,
    PlayerStateResponse,
    SecondsRequest,
    SelectRequest,
    ShuffleRequest,
    SkipRequest,
    SourceRequest,
    SourcesRequest,
)
from discogs_radio.application.services.playback_session import PlaybackSession
from discogs_radio.application.services.radio_session import RadioSession

router = APIRouter()
logger = logging.getLogger(__name__)


def _state(session: RadioSession) -> PlayerStateResponse:
    state = session.playback.get_state()
    track = session.playback.current_track
    search_url = None
    if track is not None and state["quota_exceeded"]:
        search_url = session.search_url(track.id)
    return PlayerStateResponse.from_state(state, search_url=search_url)


# Hey future me, the UI polls this every second or so, which is why the request logging
# middleware keeps quiet about this path. Keep it cheap: no awaits, just a snapshot.
@router.get("/state", response_model=PlayerStateResponse)
async def get_state(session: RadioSession = Depends(get_radio_session)) -> PlayerStateResponse:
    """Current playback state."""
    return _state(session)


# =========================================================================
# TRANSPORT
# =========================================================================


@router.post("/play", response_model=PlayerStateResponse)
async def play(session: RadioSession = Depends(get_radio_session)) -> PlayerStateResponse:
    session.playback.play()
    return _state(session)


@router.post("/pause", response_model=PlayerStateResponse)
async def pause(session: RadioSession = Depends(get_radio_session)) -> PlayerStateResponse:
    session.playback.pause()
    return _state(session)


@router.post("/toggle", response_model=PlayerStateResponse)
async def toggle_play(session: RadioSession = Depends(get_radio_session)) -> PlayerStateResponse:
    session.playback.toggle_play()
    return _state(session)


@router.post("/next", response_model=PlayerStateResponse)
async def next_track(session: RadioSession = Depends(get_radio_session)) -> PlayerStateResponse:
    session.playback.next()
    return _state(session)


@router.post("/previous", response_model=PlayerStateResponse)
async def previous_track(
    session: RadioSession = Depends(get_radio_session),
) -> PlayerStateResponse:
    session.playback.previous()
    return _state(session)


@router.post("/select", response_model=PlayerStateResponse)
async def select(
    request: SelectRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    """Jump to a playlist index or a track id. 404 when the target isn't in the playlist."""
    if request.track_id is not None:
        session.playback.select_track(request.track_id, autoplay=request.autoplay)
    else:
        session.playback.select(request.index or 0, autoplay=request.autoplay)
    return _state(session)


@router.post("/start-listening", response_model=PlayerStateResponse)
async def start_listening(
    session: RadioSession = Depends(get_radio_session),
) -> PlayerStateResponse:
    """Jump to a random track that already has media and play it."""
    session.playback.start_listening()
    return _state(session)


@router.post("/seek", response_model=PlayerStateResponse)
async def seek(
    request: SecondsRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    session.playback.seek(request.seconds)
    return _state(session)


@router.post("/skip", response_model=PlayerStateResponse)
async def skip(
    request: SkipRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    """Skip forward / backward by the configured step or ``seconds``."""
    if request.direction >= 0:
        session.playback.skip_forward(request.seconds)
    else:
        session.playback.skip_backward(request.seconds)
    return _state(session)


@router.post("/scrub/press")
async def scrub_press(
    request: DirectionRequest, playback: PlaybackSession = Depends(get_playback)
) -> dict[str, float]:
    """Start hold-to-scrub: one coarse step now, fine steps while held."""
    playback.scrubber.press(request.direction)
    return {"position": playback.position}


@router.post("/scrub/release")
async def scrub_release(playback: PlaybackSession = Depends(get_playback)) -> dict[str, float]:
    playback.scrubber.release()
    return {"position": playback.position}


# =========================================================================
# PLAYLIST SETTINGS
# =========================================================================


@router.post("/shuffle", response_model=PlayerStateResponse)
async def shuffle(
    request: ShuffleRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    if request.enabled is None:
        session.playback.toggle_shuffle()
    else:
        session.playback.set_shuffle(request.enabled)
    return _state(session)


@router.put("/sources", response_model=PlayerStateResponse)
async def set_sources(
    request: SourcesRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    session.playback.set_active_sources(request.sources)
    return _state(session)


@router.post("/sources/toggle", response_model=PlayerStateResponse)
async def toggle_source(
    request: SourceRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    """Toggle one source. Deselecting the last active source is ignored."""
    session.playback.toggle_source(request.source)
    return _state(session)


@router.post("/like")
async def like(
    request: LikeRequest, playback: PlaybackSession = Depends(get_playback)
) -> dict[str, bool]:
    await playback.like(request.track_id, request.liked)
    return {"liked": request.liked}


@router.post("/dislike", response_model=PlayerStateResponse)
async def dislike(
    request: DislikeRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    """Hide a track from the playlist; moves on when it was playing."""
    await session.playback.dislike(request.track_id)
    return _state(session)


# =========================================================================
# PLAYER EVENTS (reported by the embedded player)
# =========================================================================


@router.post("/events/position")
async def report_position(
    request: SecondsRequest, playback: PlaybackSession = Depends(get_playback)
) -> dict[str, float]:
    playback.report_position(request.seconds)
    return {"position": playback.position}


@router.post("/events/duration", response_model=PlayerStateResponse)
async def report_duration(
    request: SecondsRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    session.playback.report_duration(request.seconds)
    return _state(session)


@router.post("/events/ended", response_model=PlayerStateResponse)
async def report_ended(session: RadioSession = Depends(get_radio_session)) -> PlayerStateResponse:
    session.playback.handle_ended()
    return _state(session)


@router.post("/events/error", response_model=PlayerStateResponse)
async def report_error(
    request: PlayerErrorRequest, session: RadioSession = Depends(get_radio_session)
) -> PlayerStateResponse:
    """Handle a YouTube player error code (skip, or one alternate-video attempt)."""
    logger.info("Player reported error %d", request.code)
    await session.playback.handle_player_error(request.code)
    return _state(session)
