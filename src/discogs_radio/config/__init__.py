"""Configuration module for Discogs Radio."""

from .settings import (
    CacheSettings,
    DatabaseSettings,
    EdgeFunctionSettings,
    ObservabilitySettings,
    PlaybackSettings,
    ResolverSettings,
    Settings,
    VerifierSettings,
    get_settings,
)

__all__ = [
    "CacheSettings",
    "DatabaseSettings",
    "EdgeFunctionSettings",
    "ObservabilitySettings",
    "PlaybackSettings",
    "ResolverSettings",
    "Settings",
    "VerifierSettings",
    "get_settings",
]
