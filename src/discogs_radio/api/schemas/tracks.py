"""Track, media and import schemas."""

from pydantic import BaseModel, Field, model_validator

from discogs_radio.application.services.radio_session import ImportResult
from discogs_radio.domain.entities import (
    DirectAudio,
    PlaybackProvider,
    ResolvedMedia,
    Track,
    TrackSource,
    WorkingStatus,
)


class TrackResponse(BaseModel):
    """One track as the UI sees it."""

    id: str
    title: str
    artist: str
    source: TrackSource
    album: str = ""
    year: int = 0
    genre: str = "Unknown"
    label: str = "Unknown"
    country: str | None = None
    duration: int
    cover_url: str
    cover_urls: list[str] = Field(default_factory=list)
    youtube_id: str = ""
    youtube_candidates: list[str] = Field(default_factory=list)
    bandcamp_embed_src: str | None = None
    bandcamp_url: str | None = None
    playback_provider: PlaybackProvider | None = None
    discogs_release_id: int | None = None
    discogs_track_position: str | None = None
    discogs_track_index: int | None = None
    working_status: WorkingStatus

    @classmethod
    def from_track(cls, track: Track) -> "TrackResponse":
        return cls(**track.to_dict())


class TrackListResponse(BaseModel):
    total: int = Field(description="Tracks matching the filter before paging")
    tracks: list[TrackResponse]


class ResolvedMediaResponse(BaseModel):
    provider: PlaybackProvider
    youtube_id: str | None = None
    bandcamp_embed_src: str | None = None
    bandcamp_url: str | None = None
    cover_url: str | None = None
    youtube_candidates: list[str] = Field(default_factory=list)
    cover_urls: list[str] = Field(default_factory=list)
    playable: bool

    @classmethod
    def from_media(cls, media: ResolvedMedia) -> "ResolvedMediaResponse":
        return cls(
            provider=media.provider,
            youtube_id=media.youtube_id,
            bandcamp_embed_src=media.bandcamp_embed_src,
            bandcamp_url=media.bandcamp_url,
            cover_url=media.cover_url,
            youtube_candidates=list(media.youtube_candidates),
            cover_urls=list(media.cover_urls),
            playable=media.is_playable,
        )


class MediaLinkRequest(BaseModel):
    """A working provider link the user wants remembered for a track."""

    provider: PlaybackProvider
    youtube_id: str | None = None
    bandcamp_embed_src: str | None = None
    bandcamp_url: str | None = None

    @model_validator(mode="after")
    def _payload_matches_provider(self) -> "MediaLinkRequest":
        if self.provider == PlaybackProvider.YOUTUBE and not self.youtube_id:
            raise ValueError("youtube links need a youtube_id")
        if self.provider == PlaybackProvider.BANDCAMP and not self.bandcamp_embed_src:
            raise ValueError("bandcamp links need a bandcamp_embed_src")
        if self.provider == PlaybackProvider.NONE:
            raise ValueError("provider must be youtube or bandcamp")
        return self

    def to_media(self) -> ResolvedMedia:
        if self.provider == PlaybackProvider.BANDCAMP:
            return ResolvedMedia.bandcamp(
                self.bandcamp_embed_src or "", bandcamp_url=self.bandcamp_url
            )
        return ResolvedMedia.youtube(self.youtube_id or "")


class DirectAudioResponse(BaseModel):
    audio_url: str
    source: str
    title: str | None = None
    author: str | None = None

    @classmethod
    def from_audio(cls, audio: DirectAudio) -> "DirectAudioResponse":
        return cls(
            audio_url=audio.audio_url,
            source=audio.source,
            title=audio.title,
            author=audio.author,
        )


class ImportResultResponse(BaseModel):
    source: TrackSource
    imported: int
    covers_from_cache: int
    first_track_id: str | None = None
    first_track_working: bool | None = Field(
        default=None, description="Outcome of the quick first-track search, None if skipped"
    )

    @classmethod
    def from_result(cls, result: ImportResult) -> "ImportResultResponse":
        return cls(
            source=result.source,
            imported=result.imported,
            covers_from_cache=result.covers_from_cache,
            first_track_id=result.first_track_id,
            first_track_working=result.first_track_working,
        )
