"""BPM and genre source adapters on top of the integration clients."""

from djcrate.infrastructure.providers.artist_genre_providers import (
    LastfmGenreProvider,
    MusicBrainzGenreProvider,
    SpotifyGenreProvider,
)
from djcrate.infrastructure.providers.getsongbpm_provider import GetSongBpmProvider
from djcrate.infrastructure.providers.soundnet_provider import SoundNetProvider
from djcrate.infrastructure.providers.worker_pool import run_worker_pool

__all__ = [
    "GetSongBpmProvider",
    "LastfmGenreProvider",
    "MusicBrainzGenreProvider",
    "SoundNetProvider",
    "SpotifyGenreProvider",
    "run_worker_pool",
]
