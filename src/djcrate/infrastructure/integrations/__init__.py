"""HTTP clients for the external metadata APIs."""

from djcrate.infrastructure.integrations.base_client import BaseApiClient
from djcrate.infrastructure.integrations.getsongbpm_client import GetSongBpmClient
from djcrate.infrastructure.integrations.lastfm_client import LastfmClient
from djcrate.infrastructure.integrations.musicbrainz_client import MusicBrainzClient
from djcrate.infrastructure.integrations.soundnet_client import SoundNetClient
from djcrate.infrastructure.integrations.spotify_client import SpotifyClient

__all__ = [
    "BaseApiClient",
    "GetSongBpmClient",
    "LastfmClient",
    "MusicBrainzClient",
    "SoundNetClient",
    "SpotifyClient",
]
