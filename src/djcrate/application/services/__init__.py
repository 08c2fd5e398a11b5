"""Application services - lookup engines, the metadata service and the library view."""

from djcrate.application.services.bpm_provider_chain import BpmProviderChain
from djcrate.application.services.genre_resolver import (
    LAYERINGS,
    GenreLayer,
    GenreResolver,
    select_layers,
)
from djcrate.application.services.library_export import (
    beatport_search_url,
    soundcloud_search_url,
    to_csv,
    to_text_list,
    write_csv,
)
from djcrate.application.services.library_filter import (
    DEFAULT_BPM_RANGE,
    LibraryFilter,
    LibraryStats,
    enrich_track,
    enrich_tracks,
    filter_tracks,
    library_stats,
)

# Hey future me - TrackMetadataService is what the transports call. Chain and resolver never
# see the cache store; the service owns the read-first / write-back logic.
from djcrate.application.services.track_metadata_service import (
    MAX_LOOKUP_BATCH,
    CachedGenres,
    TrackMetadataService,
)

__all__ = [
    "DEFAULT_BPM_RANGE",
    "LAYERINGS",
    "MAX_LOOKUP_BATCH",
    "BpmProviderChain",
    "CachedGenres",
    "GenreLayer",
    "GenreResolver",
    "LibraryFilter",
    "LibraryStats",
    "TrackMetadataService",
    "beatport_search_url",
    "enrich_track",
    "enrich_tracks",
    "filter_tracks",
    "library_stats",
    "select_layers",
    "soundcloud_search_url",
    "to_csv",
    "to_text_list",
    "write_csv",
]
