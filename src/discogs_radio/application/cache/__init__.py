"""Caching layer for media resolution."""

from discogs_radio.application.cache.base_cache import (
    BaseCache,
    CacheEntry,
    InFlight,
    InMemoryCache,
)
from discogs_radio.application.cache.snapshot_cache import (
    TrackSnapshot,
    TrackSnapshotCache,
    playable_subset,
)
from discogs_radio.application.cache.youtube_search_cache import (
    YouTubeSearchCache,
    search_cache_key,
)

__all__ = [
    "BaseCache",
    "CacheEntry",
    "InFlight",
    "InMemoryCache",
    "TrackSnapshot",
    "TrackSnapshotCache",
    "YouTubeSearchCache",
    "playable_subset",
    "search_cache_key",
]
