"""Configuration module for djcrate."""

from .settings import (
    EnrichmentSettings,
    GetSongBpmSettings,
    LastfmSettings,
    LogSettings,
    MusicBrainzSettings,
    Settings,
    SoundNetSettings,
    SpotifySettings,
    TrackCacheSettings,
    get_settings,
)

__all__ = [
    "EnrichmentSettings",
    "GetSongBpmSettings",
    "LastfmSettings",
    "LogSettings",
    "MusicBrainzSettings",
    "Settings",
    "SoundNetSettings",
    "SpotifySettings",
    "TrackCacheSettings",
    "get_settings",
]
