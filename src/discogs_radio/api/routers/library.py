"""Library endpoints: CSV import, Discogs load, track listing and clearing."""

import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile

from discogs_radio.api.dependencies import get_radio_session
from discogs_radio.api.schemas import (
    ImportResultResponse,
    TrackListResponse,
    TrackResponse,
)
from discogs_radio.application.services.radio_session import RadioSession
from discogs_radio.domain.entities import TrackSource, WorkingStatus
from discogs_radio.domain.exceptions import CSVImportError, EntityNotFoundException

router = APIRouter()
logger = logging.getLogger(__name__)


# Hey future me - Discogs exports are UTF-8, but some spreadsheet round-trips add a BOM or
# re-save as latin-1. utf-8-sig eats the BOM, latin-1 never fails to decode.
def _decode_csv(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


@router.post("/import/{source}", response_model=ImportResultResponse)
async def import_csv(
    source: TrackSource,
    file: UploadFile = File(..., description="Discogs collection or wantlist CSV export"),
    session: RadioSession = Depends(get_radio_session),
) -> ImportResultResponse:
    """Replace the CSV list of one source with the uploaded export.

    Answers after the quick first-track search, the cover scrape keeps running afterwards.
    """
    raw = await file.read()
    if not raw:
        raise CSVImportError("CSV file is empty")
    result = await session.import_csv(_decode_csv(raw), source)
    return ImportResultResponse.from_result(result)


@router.post("/discogs/load")
async def load_discogs_library(
    max_per_source: int = Query(100, ge=1, le=1000),
    session: RadioSession = Depends(get_radio_session),
) -> dict[str, int]:
    """Fetch collection + wantlist from Discogs (422 when no account is connected)."""
    loaded = await session.load_discogs_library(max_per_source=max_per_source)
    return {"loaded": loaded}


@router.get("/tracks", response_model=TrackListResponse)
async def list_tracks(
    source: TrackSource | None = Query(None),
    status: WorkingStatus | None = Query(None),
    playlist_only: bool = Query(False, description="Only tracks in the current playlist"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    session: RadioSession = Depends(get_radio_session),
) -> TrackListResponse:
    tracks = session.playback.playlist if playlist_only else session.store.snapshot()
    if source is not None:
        tracks = [track for track in tracks if track.source == source]
    if status is not None:
        tracks = [track for track in tracks if track.working_status == status]
    page = tracks[offset : offset + limit]
    return TrackListResponse(
        total=len(tracks), tracks=[TrackResponse.from_track(track) for track in page]
    )


@router.get("/tracks/{track_id}", response_model=TrackResponse)
async def get_track(
    track_id: str, session: RadioSession = Depends(get_radio_session)
) -> TrackResponse:
    track = session.store.get(track_id)
    if track is None:
        raise EntityNotFoundException("Track", track_id)
    return TrackResponse.from_track(track)


@router.get("/counts")
async def track_counts(session: RadioSession = Depends(get_radio_session)) -> dict[str, int]:
    """Track count per source (after dislikes), for the source toggles."""
    return session.playback.track_counts()


@router.delete("/tracks")
async def clear_tracks(
    source: TrackSource | None = Query(None, description="Omit to clear every CSV list"),
    session: RadioSession = Depends(get_radio_session),
) -> dict[str, int]:
    """Drop CSV-imported tracks. Discogs API tracks are left alone."""
    removed = await session.clear_library(source)
    return {"removed": removed}
