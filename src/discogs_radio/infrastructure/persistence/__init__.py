"""Persistence layer (SQLAlchemy cache tables and local preference file)."""

from .database import Database
from .preference_store import JsonPreferenceStore
from .repositories import CoverArtRepository, TrackCacheRepository, TrackMediaRepository

__all__ = [
    "CoverArtRepository",
    "Database",
    "JsonPreferenceStore",
    "TrackCacheRepository",
    "TrackMediaRepository",
]
