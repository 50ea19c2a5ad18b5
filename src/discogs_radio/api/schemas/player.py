"""Player command and state schemas."""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from discogs_radio.domain.entities import PlaybackState, TrackSource

from .tracks import TrackResponse


class PlayerStateResponse(BaseModel):
    """Snapshot of the playback session."""

    state: PlaybackState
    current_index: int
    current_track: TrackResponse | None = None
    position: float
    shuffle: bool
    active_sources: list[TrackSource]
    playlist_length: int
    quota_exceeded: bool = Field(
        description="YouTube search quota is gone for this session, offer the external search link"
    )
    search_url: str | None = Field(
        default=None, description="YouTube search URL for the current track"
    )

    @classmethod
    def from_state(
        cls, state: dict[str, Any], search_url: str | None = None
    ) -> "PlayerStateResponse":
        return cls(**state, search_url=search_url)


class SelectRequest(BaseModel):
    """Select by playlist index or by track id (exactly one)."""

    index: int | None = Field(default=None, ge=0)
    track_id: str | None = None
    autoplay: bool = True

    @model_validator(mode="after")
    def _exactly_one_target(self) -> "SelectRequest":
        if (self.index is None) == (self.track_id is None):
            raise ValueError("Provide either index or track_id")
        return self


class SecondsRequest(BaseModel):
    seconds: float = Field(ge=0)


class SkipRequest(BaseModel):
    direction: int = Field(description="1 = forward, -1 = backward")
    seconds: float | None = Field(default=None, gt=0)


class DirectionRequest(BaseModel):
    direction: int = Field(description="1 = forward, -1 = backward")


class ShuffleRequest(BaseModel):
    enabled: bool | None = Field(default=None, description="Omit to toggle")


class SourcesRequest(BaseModel):
    sources: list[TrackSource] = Field(min_length=1)


class SourceRequest(BaseModel):
    source: TrackSource


class PlayerErrorRequest(BaseModel):
    """Error code reported by the embedded YouTube player."""

    code: int


class LikeRequest(BaseModel):
    track_id: str
    liked: bool = True


class DislikeRequest(BaseModel):
    track_id: str
