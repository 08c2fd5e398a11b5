"""Transports between the enrichment controller and the lookup service."""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from djcrate.application.services.track_metadata_service import (
    MAX_LOOKUP_BATCH,
    CachedGenres,
    TrackMetadataService,
)
from djcrate.domain.dtos import NO_SOURCE, GenreResult, LookupRequest, LookupResult
from djcrate.domain.exceptions import SourceParseError
from djcrate.domain.ports import IEnrichmentTransport
from djcrate.infrastructure.integrations.base_client import BaseApiClient
from djcrate.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class InProcessTransport(IEnrichmentTransport):
    """Calls the TrackMetadataService directly (same process, no HTTP)."""

    def __init__(self, service: TrackMetadataService) -> None:
        self.service = service

    async def lookup_bpm(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        return await self.service.lookup_bpm(requests, should_stop)

    async def lookup_genres(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[GenreResult]:
        return await self.service.lookup_genres(requests, should_stop)

    async def cached_genres(self, requests: Sequence[LookupRequest]) -> CachedGenres:
        return await self.service.cached_genres(requests)


def _track_payload(requests: Sequence[LookupRequest]) -> dict[str, Any]:
    return {
        "tracks": [
            {
                "trackId": request.track_id,
                "trackName": request.track_name,
                "artistName": request.artist_name,
            }
            for request in requests
        ]
    }


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value) if value > 0 else None


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


# Hey future me - the wire format is the camelCase JSON the web app has always spoken:
#   POST /api/bpm            {"tracks": [{trackId, trackName, artistName}]}
#                            -> {"results": [{trackId, bpm, musicalKey, camelotKey, source}]}
#   POST /api/genres         same body -> {"results": [{trackId, genres}]}
#   POST /api/genres/cached  same body -> {"results": [...], "uncachedTrackIds": [...]}
# The server rejects more than 50 tracks per call, so every call is chunked here. HTTP and
# payload errors surface as ExternalServiceError; the controller counts such a batch as done.
class HttpEnrichmentTransport(BaseApiClient, IEnrichmentTransport):
    """Reaches a remote lookup service over HTTP."""

    SOURCE_NAME = "djcrate-api"

    def __init__(
        self,
        base_url: str,
        rate_limiter: RateLimiter | None = None,
        max_batch: int = MAX_LOOKUP_BATCH,
    ) -> None:
        super().__init__(rate_limiter)
        self.API_BASE_URL = base_url.rstrip("/")
        self.max_batch = max(1, max_batch)

    def _client_headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "Content-Type": "application/json"}

    async def _post(self, path: str, requests: Sequence[LookupRequest]) -> dict[str, Any]:
        response = await self._request("POST", path, json=_track_payload(requests))
        data = self._json(response)
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise SourceParseError(
                f"{self.SOURCE_NAME} {path}: missing results array", source=self.SOURCE_NAME
            )
        return data

    def _batches(self, requests: Sequence[LookupRequest]) -> list[Sequence[LookupRequest]]:
        return [
            requests[i : i + self.max_batch] for i in range(0, len(requests), self.max_batch)
        ]

    async def lookup_bpm(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        results: list[LookupResult] = []
        for batch in self._batches(requests):
            if should_stop is not None and should_stop():
                break
            data = await self._post("/api/bpm", batch)
            for item in data["results"]:
                if not isinstance(item, dict) or not _text(item.get("trackId")):
                    continue
                results.append(
                    LookupResult(
                        track_id=item["trackId"],
                        source=_text(item.get("source")) or NO_SOURCE,
                        bpm=_number(item.get("bpm")),
                        musical_key=_text(item.get("musicalKey")),
                        camelot_key=_text(item.get("camelotKey")),
                    )
                )
        return results

    @staticmethod
    def _genre_results(items: list[Any]) -> list[GenreResult]:
        results: list[GenreResult] = []
        for item in items:
            if not isinstance(item, dict) or not _text(item.get("trackId")):
                continue
            genres = item.get("genres")
            results.append(
                GenreResult(
                    track_id=item["trackId"],
                    genres=[g for g in genres if isinstance(g, str)]
                    if isinstance(genres, list)
                    else [],
                    source=_text(item.get("source")) or NO_SOURCE,
                )
            )
        return results

    async def lookup_genres(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[GenreResult]:
        results: list[GenreResult] = []
        for batch in self._batches(requests):
            if should_stop is not None and should_stop():
                break
            data = await self._post("/api/genres", batch)
            results.extend(self._genre_results(data["results"]))
        return results

    async def cached_genres(self, requests: Sequence[LookupRequest]) -> CachedGenres:
        data = await self._post("/api/genres/cached", requests)
        uncached = data.get("uncachedTrackIds")
        return CachedGenres(
            results=self._genre_results(data["results"]),
            uncached_track_ids=[
                track_id for track_id in uncached or [] if isinstance(track_id, str)
            ],
        )


__all__ = ["HttpEnrichmentTransport", "InProcessTransport"]
