"""SoundNet (RapidAPI track-analysis) BPM source."""

from typing import Any

from djcrate.domain.dtos import LookupRequest, LookupResult
from djcrate.domain.value_objects.camelot import pitch_class_to_key
from djcrate.domain.value_objects.track_normalization import normalize_artist, normalize_title
from djcrate.infrastructure.integrations.soundnet_client import SoundNetClient
from djcrate.infrastructure.providers.base import (
    PooledBpmSource,
    clean_str,
    positive_float,
    resolve_camelot,
)


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


# SoundNet's "key" is either a name ("A minor", "F#") or an audio-features style pitch class
# integer with a separate "mode" flag. Both end up as a key NAME here.
def parse_musical_key(analysis: dict[str, Any]) -> str | None:
    """Musical key name from a SoundNet analysis object."""
    raw_key = analysis.get("key")
    pitch_class = _int_or_none(raw_key)
    if pitch_class is not None:
        return pitch_class_to_key(pitch_class, _int_or_none(analysis.get("mode")))
    return clean_str(raw_key)


class SoundNetProvider(PooledBpmSource):
    """Second-choice BPM source, free-text search over artist and title."""

    name = "soundnet"

    def __init__(
        self,
        client: SoundNetClient,
        concurrency: int = 3,
        request_delay: float = 0.2,
    ) -> None:
        self.client = client
        self.concurrency = concurrency
        self.request_delay = request_delay

    async def _lookup_single(self, request: LookupRequest) -> LookupResult:
        analysis = await self.client.search(
            normalize_artist(request.artist_name), normalize_title(request.track_name)
        )
        if analysis is None:
            return LookupResult.empty(request.track_id, self.name)

        tempo = analysis.get("tempo")
        if tempo is None:
            tempo = analysis.get("bpm")

        camelot = analysis.get("camelot")
        if camelot is None:
            camelot = analysis.get("camelot_key")

        musical_key = parse_musical_key(analysis)
        return LookupResult(
            track_id=request.track_id,
            source=self.name,
            bpm=positive_float(tempo),
            musical_key=musical_key,
            camelot_key=resolve_camelot(clean_str(camelot), musical_key),
        )


__all__ = ["SoundNetProvider", "parse_musical_key"]
