"""Shared test fixtures."""

from collections.abc import Callable
from typing import Any

import pytest

from discogs_radio.domain.entities import Track, TrackSource


def build_track(
    track_id: str = "collection-1-A1",
    artist: str = "Artist",
    title: str = "Title",
    source: TrackSource = TrackSource.COLLECTION,
    **overrides: Any,
) -> Track:
    """Track with sensible defaults; keyword overrides go straight to the dataclass."""
    return Track(id=track_id, title=title, artist=artist, source=source, **overrides)


@pytest.fixture
def make_track() -> Callable[..., Track]:
    """Factory fixture for Track instances."""
    return build_track
