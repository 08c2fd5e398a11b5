"""Layered multi-source genre resolver, one lookup per artist per source."""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import cast

from djcrate.application.cache.lookup_cache import LookupCacheService
from djcrate.domain.dtos import NO_SOURCE, GenreResult, GenreScope, LookupRequest
from djcrate.domain.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    RateLimitExceededError,
)
from djcrate.domain.ports import IArtistGenreSource, ITrackGenreSource
from djcrate.domain.value_objects.track_normalization import artist_key, normalize_artist
from djcrate.infrastructure.observability.log_messages import LogMessages
from djcrate.infrastructure.providers.worker_pool import run_worker_pool

logger = logging.getLogger(__name__)

GenreSource = ITrackGenreSource | IArtistGenreSource


@dataclass(frozen=True)
class GenreLayer:
    """One (source, scope) step of a genre layering."""

    source: GenreSource
    scope: GenreScope

    def __post_init__(self) -> None:
        if self.scope is GenreScope.PER_TRACK_FAST:
            if not isinstance(self.source, ITrackGenreSource):
                raise ConfigurationError(
                    f"Genre source '{self.source.name}' cannot run per track"
                )
        elif not isinstance(self.source, IArtistGenreSource):
            raise ConfigurationError(f"Genre source '{self.source.name}' cannot run per artist")

    @property
    def name(self) -> str:
        return self.source.name


# Named layerings of the one resolver engine. Each entry: (source name, scope).
LAYERINGS: dict[str, tuple[tuple[str, GenreScope], ...]] = {
    "default": (
        ("getsongbpm", GenreScope.PER_TRACK_FAST),
        ("musicbrainz", GenreScope.PER_ARTIST_SLOW),
    ),
    "lastfm": (
        ("lastfm", GenreScope.PER_ARTIST_FAST),
        ("musicbrainz", GenreScope.PER_ARTIST_SLOW),
    ),
    "spotify": (
        ("spotify", GenreScope.PER_ARTIST_FAST),
        ("musicbrainz", GenreScope.PER_ARTIST_SLOW),
    ),
}


def select_layers(layering: str, sources: Mapping[str, GenreSource]) -> list[GenreLayer]:
    """Build the layers of a named layering from the sources that are actually configured.

    Unconfigured sources are dropped (a layering can shrink to MusicBrainz alone).

    Raises:
        ConfigurationError: Unknown layering name, or no source of it is available
    """
    steps = LAYERINGS.get(layering)
    if steps is None:
        raise ConfigurationError(
            f"Unknown genre layering '{layering}'. Choose one of: {', '.join(LAYERINGS)}"
        )

    layers: list[GenreLayer] = []
    for source_name, scope in steps:
        source = sources.get(source_name)
        if source is None:
            logger.info(LogMessages.source_skipped(source_name, "credentials not configured"))
            continue
        layers.append(GenreLayer(source=source, scope=scope))

    if not layers:
        raise ConfigurationError(f"No genre source available for layering '{layering}'")
    return layers


# Hey future me - how a genre run works:
# 1. requests are grouped by artist key ("Daft Punk, Pharrell" -> "daft punk"), so a 40-track
#    Daft Punk playlist costs ONE lookup per source, fanned out to all 40 tracks
# 2. layers run in order; an artist resolved with >= 1 genre never reaches a later layer, so the
#    slow MusicBrainz layer only sees the leftovers of the fast one
# 3. every answer - including [] and including failures - is remembered per source in the
#    LookupCacheService for the process lifetime. "Nothing found" is never asked again.
# Per-track sources (GetSongBPM) need a title, so they probe up to track_probe_limit tracks of
# the artist and stop at the first one that carries genres.
class GenreResolver:
    """Resolve canonical genres for tracks through ordered genre layers."""

    def __init__(
        self,
        layers: Sequence[GenreLayer],
        cache: LookupCacheService,
        track_probe_limit: int = 2,
    ) -> None:
        if not layers:
            raise ConfigurationError("Genre resolver needs at least one layer")
        self.layers = list(layers)
        self.cache = cache
        self.track_probe_limit = max(1, track_probe_limit)

    @property
    def layer_names(self) -> list[str]:
        return [layer.name for layer in self.layers]

    async def resolve(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[GenreResult]:
        """One GenreResult per request, in request order.

        Tracks of artists nobody knows get genres=[] with the last layer's name as source,
        provided every layer was asked. Artists left unasked because of should_stop get
        source "none" so callers don't persist them as checked.
        """
        groups: dict[str, list[LookupRequest]] = {}
        for request in requests:
            groups.setdefault(artist_key(request.artist_name), []).append(request)

        resolved: dict[str, tuple[list[str], str]] = {}
        answered: dict[str, int] = dict.fromkeys(groups, 0)
        # An empty artist name can't be looked up anywhere; it counts as fully answered.
        if "" in groups:
            answered[""] = len(self.layers)
        unresolved = [key for key in groups if key]

        for layer in self.layers:
            if not unresolved or (should_stop is not None and should_stop()):
                break

            answers = await self._run_layer(
                layer, {key: groups[key] for key in unresolved}, should_stop
            )
            for key, genres in answers.items():
                answered[key] += 1
                if genres:
                    resolved[key] = (genres, layer.name)

            unresolved = [key for key in unresolved if key not in resolved]
            logger.debug(
                f"Genre layer {layer.name} ({layer.scope.value}): "
                f"{len(answers)} artist(s) answered, {len(unresolved)} still unresolved"
            )

        results: list[GenreResult] = []
        for request in requests:
            key = artist_key(request.artist_name)
            if key in resolved:
                genres, source = resolved[key]
                results.append(GenreResult(request.track_id, list(genres), source))
            elif answered[key] >= len(self.layers):
                results.append(GenreResult(request.track_id, [], self.layers[-1].name))
            else:
                results.append(GenreResult(request.track_id, [], NO_SOURCE))

        tagged = sum(1 for result in results if result.genres)
        logger.info(LogMessages.lookup_completed("Genre", len(requests), tagged))
        return results

    async def _run_layer(
        self,
        layer: GenreLayer,
        groups: Mapping[str, list[LookupRequest]],
        should_stop: Callable[[], bool] | None,
    ) -> dict[str, list[str]]:
        answers: dict[str, list[str]] = {}

        # Cache hits first, so the pool's request delay is only paid for real requests.
        to_fetch: list[str] = []
        for key in groups:
            cached = await self.cache.get_artist_genres(layer.name, key)
            if cached is not None:
                answers[key] = cached
            else:
                to_fetch.append(key)

        async def handle(key: str) -> None:
            group = groups[key]
            answers[key] = await self.cache.get_or_fetch_artist_genres(
                layer.name, key, lambda: self._fetch(layer, group)
            )

        if to_fetch and layer.scope.is_slow:
            logger.info(
                f"Genre layer {layer.name}: {len(to_fetch)} artist(s) go to the slow source"
            )

        await run_worker_pool(
            to_fetch,
            handle,
            concurrency=layer.source.concurrency,
            delay=layer.source.request_delay,
            should_stop=should_stop,
            name=layer.name,
        )
        return answers

    async def _fetch(self, layer: GenreLayer, group: Sequence[LookupRequest]) -> list[str]:
        """Ask the layer's source about one artist; failures count as 'nothing found'."""
        source = layer.source
        if layer.scope is GenreScope.PER_TRACK_FAST:
            track_source = cast(ITrackGenreSource, source)
            for request in group[: self.track_probe_limit]:
                genres = await self._guarded(
                    source.name,
                    f"{request.artist_name} - {request.track_name}",
                    track_source.lookup_track(request),
                )
                if genres:
                    return genres
            return []

        artist_source = cast(IArtistGenreSource, source)
        name = normalize_artist(group[0].artist_name)
        return await self._guarded(source.name, name, artist_source.lookup_artist(name))

    @staticmethod
    async def _guarded(
        source_name: str, item: str, lookup: Awaitable[list[str]]
    ) -> list[str]:
        try:
            return await lookup
        except RateLimitExceededError as e:
            logger.warning(LogMessages.source_rate_limited(source_name, e.retry_after))
        except ExternalServiceError as e:
            logger.warning(LogMessages.source_failed(source_name, item, str(e)))
        return []


__all__ = ["LAYERINGS", "GenreLayer", "GenreResolver", "GenreSource", "select_layers"]
