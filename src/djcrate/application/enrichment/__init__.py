"""Client-side enrichment: controller, cancellation and transports."""

from djcrate.application.enrichment.cancellation import CancellationToken
from djcrate.application.enrichment.controller import (
    SEED_SOURCE,
    EnrichmentController,
    EnrichmentPhase,
    EnrichmentState,
    KeySeed,
)
from djcrate.application.enrichment.transports import (
    HttpEnrichmentTransport,
    InProcessTransport,
)

__all__ = [
    "SEED_SOURCE",
    "CancellationToken",
    "EnrichmentController",
    "EnrichmentPhase",
    "EnrichmentState",
    "HttpEnrichmentTransport",
    "InProcessTransport",
    "KeySeed",
]
