"""GetSongBPM adapter: BPM source and per-track genre source in one."""

from typing import Any

from djcrate.domain.dtos import LookupRequest, LookupResult
from djcrate.domain.ports import ITrackGenreSource
from djcrate.domain.value_objects.genre_taxonomy import normalize_simple_genres
from djcrate.domain.value_objects.track_normalization import normalize_artist, normalize_title
from djcrate.infrastructure.integrations.getsongbpm_client import GetSongBpmClient
from djcrate.infrastructure.providers.base import (
    PooledBpmSource,
    clean_str,
    positive_float,
    resolve_camelot,
)


def artist_genres(song: dict[str, Any]) -> list[str]:
    """Raw genre strings of the song's artist (GetSongBPM nests them under song.artist)."""
    artist = song.get("artist")
    if not isinstance(artist, dict):
        return []
    genres = artist.get("genres")
    if not isinstance(genres, list):
        return []
    return [str(genre) for genre in genres if genre]


# Hey future me - GetSongBPM pulls double duty. The song search that gives us tempo + key also
# carries the ARTIST's genre list, so the genre resolver uses it as its fast per-track layer:
# one song lookup per artist, genres stored at artist level. It's the same HTTP call shape for
# both, but the two uses don't share results (BPM runs and genre runs happen at different times).
class GetSongBpmProvider(PooledBpmSource, ITrackGenreSource):
    """GetSongBPM song search as BPM source and as track-keyed genre source."""

    name = "getsongbpm"

    def __init__(
        self,
        client: GetSongBpmClient,
        concurrency: int = 5,
        request_delay: float = 0.1,
    ) -> None:
        self.client = client
        self.concurrency = concurrency
        self.request_delay = request_delay

    async def _search(self, request: LookupRequest) -> dict[str, Any] | None:
        return await self.client.search_song(
            normalize_title(request.track_name), normalize_artist(request.artist_name)
        )

    async def _lookup_single(self, request: LookupRequest) -> LookupResult:
        song = await self._search(request)
        if song is None:
            return LookupResult.empty(request.track_id, self.name)

        musical_key = clean_str(song.get("key_of"))
        return LookupResult(
            track_id=request.track_id,
            source=self.name,
            bpm=positive_float(song.get("tempo")),
            musical_key=musical_key,
            camelot_key=resolve_camelot(clean_str(song.get("open_key")), musical_key),
        )

    async def lookup_track(self, request: LookupRequest) -> list[str]:
        song = await self._search(request)
        if song is None:
            return []
        return normalize_simple_genres(artist_genres(song))


__all__ = ["GetSongBpmProvider", "artist_genres"]
