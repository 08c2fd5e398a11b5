"""Application settings loaded from environment variables and an optional .env file."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _config(prefix: str = "") -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


# Hey future me - every credentialed source has its own settings group with is_configured().
# The provider chain and genre layering only include a source when is_configured() is True,
# so "no API key" never turns into a runtime error halfway through a batch.
class GetSongBpmSettings(BaseSettings):
    """GetSongBPM API credentials."""

    model_config = _config("GETSONGBPM_")

    api_key: str = ""

    def is_configured(self) -> bool:
        """Check if an API key is set."""
        return bool(self.api_key)


class SoundNetSettings(BaseSettings):
    """SoundNet track-analysis API (RapidAPI) credentials."""

    model_config = _config()

    api_key: str = Field(
        default="", validation_alias=AliasChoices("RAPIDAPI_KEY", "SOUNDNET_API_KEY")
    )
    api_host: str = Field(
        default="track-analysis.p.rapidapi.com",
        validation_alias=AliasChoices("RAPIDAPI_HOST", "SOUNDNET_API_HOST"),
    )

    def is_configured(self) -> bool:
        """Check if a RapidAPI key is set."""
        return bool(self.api_key)


class LastfmSettings(BaseSettings):
    """Last.fm API credentials."""

    model_config = _config("LASTFM_")

    api_key: str = ""

    def is_configured(self) -> bool:
        """Check if an API key is set."""
        return bool(self.api_key)


class SpotifySettings(BaseSettings):
    """Spotify client-credentials (app-only, no user OAuth)."""

    model_config = _config("SPOTIFY_")

    client_id: str = ""
    client_secret: str = ""

    def is_configured(self) -> bool:
        """Check if both client id and secret are set."""
        return bool(self.client_id and self.client_secret)


class MusicBrainzSettings(BaseSettings):
    """MusicBrainz identification.

    MusicBrainz needs no key but rejects requests without a descriptive User-Agent.
    """

    model_config = _config("MUSICBRAINZ_")

    app_name: str = "djcrate"
    app_version: str = "0.1.0"
    contact: str = "https://github.com/djcrate/djcrate"


class TrackCacheSettings(BaseSettings):
    """Persistent track cache store.

    An empty url means "no store configured" - lookups go straight to providers.
    """

    model_config = _config("TRACK_CACHE_")

    url: str = ""
    echo: bool = False

    def is_configured(self) -> bool:
        """Check if a database url is set."""
        return bool(self.url)


class EnrichmentSettings(BaseSettings):
    """Batching, concurrency and in-process cache bounds."""

    model_config = _config("ENRICHMENT_")

    bpm_batch_size: int = Field(default=20, ge=1)
    genre_batch_size: int = Field(default=50, ge=1)
    genre_workers: int = Field(default=3, ge=1)
    max_lookup_batch: int = Field(default=50, ge=1)
    bpm_cache_size: int = Field(default=10_000, ge=1)
    artist_cache_size: int = Field(default=5_000, ge=1)
    genre_layering: str = "default"


class LogSettings(BaseSettings):
    """Logging output."""

    model_config = _config("LOG_")

    level: str = "INFO"
    json_format: bool = False


class Settings(BaseSettings):
    """Top-level settings container."""

    model_config = _config()

    getsongbpm: GetSongBpmSettings = Field(default_factory=GetSongBpmSettings)
    soundnet: SoundNetSettings = Field(default_factory=SoundNetSettings)
    lastfm: LastfmSettings = Field(default_factory=LastfmSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    musicbrainz: MusicBrainzSettings = Field(default_factory=MusicBrainzSettings)
    track_cache: TrackCacheSettings = Field(default_factory=TrackCacheSettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)
    log: LogSettings = Field(default_factory=LogSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
