"""Pydantic request / response schemas of the HTTP API."""

from discogs_radio.api.schemas.player import (
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
from discogs_radio.api.schemas.tracks import (
    DirectAudioResponse,
    ImportResultResponse,
    MediaLinkRequest,
    ResolvedMediaResponse,
    TrackListResponse,
    TrackResponse,
)

__all__ = [
    "DirectAudioResponse",
    "DirectionRequest",
    "DislikeRequest",
    "ImportResultResponse",
    "LikeRequest",
    "MediaLinkRequest",
    "PlayerErrorRequest",
    "PlayerStateResponse",
    "ResolvedMediaResponse",
    "SecondsRequest",
    "SelectRequest",
    "ShuffleRequest",
    "SkipRequest",
    "SourceRequest",
    "SourcesRequest",
    "TrackListResponse",
    "TrackResponse",
]
