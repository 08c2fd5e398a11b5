"""Client-side enrichment controller: batches, progress and cancellation for one library."""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from djcrate.application.enrichment.cancellation import CancellationToken
from djcrate.application.services.library_filter import enrich_tracks
from djcrate.domain.dtos import (
    BpmProgress,
    EnrichedTrack,
    GenreProgress,
    GenreResult,
    LookupResult,
    Track,
)
from djcrate.domain.exceptions import DomainException, EnrichmentCancelledError
from djcrate.domain.ports import IEnrichmentTransport
from djcrate.domain.value_objects.camelot import pitch_class_to_key, to_camelot_key
from djcrate.infrastructure.observability.log_messages import LogMessages
from djcrate.infrastructure.observability.logging import set_correlation_id
from djcrate.infrastructure.providers.worker_pool import run_worker_pool

if TYPE_CHECKING:
    from djcrate.config.settings import EnrichmentSettings

logger = logging.getLogger(__name__)

# Source tag for BPM/key data the user brought along (CSV export with a tempo column).
SEED_SOURCE = "csv"

BPM_BATCH_SIZE = 20
GENRE_BATCH_SIZE = 50
GENRE_WORKERS = 3

# A seeded key is a name ("A minor", "8A", "F#m"), a pitch class, or (pitch class, mode).
KeySeed = str | int | tuple[int, int | None]

BpmProgressCallback = Callable[[BpmProgress], Awaitable[None]]
GenreProgressCallback = Callable[[GenreProgress], Awaitable[None]]


class EnrichmentPhase(str, Enum):
    IDLE = "idle"
    SEEDED = "seeded"
    RUNNING = "running"
    SETTLED = "settled"


@dataclass
class EnrichmentState:
    """Everything one run knows. Replaced (never reset) when the input changes."""

    tracks: list[Track]
    token: CancellationToken = field(default_factory=CancellationToken)
    phase: EnrichmentPhase = EnrichmentPhase.IDLE
    bpm: dict[str, LookupResult] = field(default_factory=dict)
    genres: dict[str, GenreResult] = field(default_factory=dict)
    bpm_progress: BpmProgress = field(default_factory=BpmProgress)
    genre_progress: GenreProgress = field(default_factory=GenreProgress)
    correlation_id: str = ""

    @property
    def is_enriching(self) -> bool:
        return self.phase is EnrichmentPhase.RUNNING


def _chunks[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def _seed_key(raw: KeySeed) -> str | None:
    """Key name for a seeded key in any of the accepted shapes."""
    if isinstance(raw, tuple):
        pitch_class, mode = raw
        return pitch_class_to_key(pitch_class, mode)
    if isinstance(raw, int) and not isinstance(raw, bool):
        return pitch_class_to_key(raw, None)
    if isinstance(raw, str):
        return raw.strip() or None
    return None


def _merge_bpm(existing: LookupResult | None, result: LookupResult) -> LookupResult:
    """Lookup result on top of seeded data: a seeded key wins, a looked-up BPM fills the gap."""
    if existing is None:
        return result
    bpm = existing.bpm if existing.bpm is not None else result.bpm
    return LookupResult(
        track_id=result.track_id,
        source=existing.source if existing.is_hit or not result.is_hit else result.source,
        bpm=bpm,
        musical_key=existing.musical_key or result.musical_key,
        camelot_key=existing.camelot_key or result.camelot_key,
    )


# Hey future me - one controller per library view:
# - load(tracks) / seed(...) SUPERSEDE the current run: its token is cancelled and a brand new
#   EnrichmentState takes over. A request already in flight for the old run finishes, but its
#   response is dropped because the old token is cancelled.
# - BPM runs in sequential batches of 20 (the lookup side already fans out per provider)
# - genres run as batches of 50 pulled by 3 workers from one shared queue
# - a failed batch still counts as completed (no data, never retried), so progress always
#   reaches total and is monotonic
class EnrichmentController:
    """Drives BPM and genre enrichment of a track list through an IEnrichmentTransport."""

    def __init__(
        self,
        transport: IEnrichmentTransport,
        bpm_batch_size: int = BPM_BATCH_SIZE,
        genre_batch_size: int = GENRE_BATCH_SIZE,
        genre_workers: int = GENRE_WORKERS,
        on_bpm_progress: BpmProgressCallback | None = None,
        on_genre_progress: GenreProgressCallback | None = None,
    ) -> None:
        self.transport = transport
        self.bpm_batch_size = max(1, bpm_batch_size)
        self.genre_batch_size = max(1, genre_batch_size)
        self.genre_workers = max(1, genre_workers)
        self.on_bpm_progress = on_bpm_progress
        self.on_genre_progress = on_genre_progress

        self._tracks: list[Track] = []
        self._seed_bpm: dict[str, float] = {}
        self._seed_keys: dict[str, KeySeed] = {}
        self._state = EnrichmentState(tracks=[])

    @classmethod
    def from_settings(
        cls,
        transport: IEnrichmentTransport,
        settings: "EnrichmentSettings",
        on_bpm_progress: BpmProgressCallback | None = None,
        on_genre_progress: GenreProgressCallback | None = None,
    ) -> "EnrichmentController":
        return cls(
            transport,
            bpm_batch_size=settings.bpm_batch_size,
            genre_batch_size=settings.genre_batch_size,
            genre_workers=settings.genre_workers,
            on_bpm_progress=on_bpm_progress,
            on_genre_progress=on_genre_progress,
        )

    @property
    def state(self) -> EnrichmentState:
        return self._state

    @property
    def phase(self) -> EnrichmentPhase:
        return self._state.phase

    # --- input -------------------------------------------------------------------------------

    def load(self, tracks: Iterable[Track]) -> EnrichmentState:
        """Replace the track list. Cancels the running enrichment; seeds are re-applied."""
        self._tracks = list(tracks)
        return self._supersede()

    def seed(
        self,
        bpm: Mapping[str, float] | None = None,
        keys: Mapping[str, KeySeed] | None = None,
    ) -> EnrichmentState:
        """Add externally known BPM/key data by track id. Cancels the running enrichment.

        Seeded BPM is tagged with source "csv" and those tracks skip the BPM lookup.
        Non-positive or non-finite BPM values are ignored.
        """
        for track_id, value in (bpm or {}).items():
            if value is None or not math.isfinite(value) or value <= 0:
                logger.warning(f"Ignoring seeded BPM {value!r} for track {track_id}")
                continue
            self._seed_bpm[track_id] = float(value)
        self._seed_keys.update(keys or {})
        return self._supersede()

    def clear_seeds(self) -> EnrichmentState:
        self._seed_bpm.clear()
        self._seed_keys.clear()
        return self._supersede()

    def cancel(self) -> None:
        """Cancel the current run (no-op when nothing runs)."""
        state = self._state
        if state.token.is_cancelled():
            return
        state.token.cancel()
        if state.phase is EnrichmentPhase.RUNNING:
            logger.info(
                LogMessages.run_cancelled(
                    "BPM", state.bpm_progress.completed, state.bpm_progress.total
                )
            )
            logger.info(
                LogMessages.run_cancelled(
                    "Genre", state.genre_progress.completed, state.genre_progress.total
                )
            )

    def _supersede(self) -> EnrichmentState:
        self.cancel()
        state = EnrichmentState(tracks=list(self._tracks))
        if self._apply_seeds(state):
            state.phase = EnrichmentPhase.SEEDED
        self._state = state
        return state

    def _apply_seeds(self, state: EnrichmentState) -> bool:
        seeded = False
        for track in state.tracks:
            bpm = self._seed_bpm.get(track.id)
            raw_key = self._seed_keys.get(track.id)
            musical_key = _seed_key(raw_key) if raw_key is not None else None
            if bpm is None and musical_key is None:
                continue
            state.bpm[track.id] = LookupResult(
                track_id=track.id,
                source=SEED_SOURCE,
                bpm=bpm,
                musical_key=musical_key,
                camelot_key=to_camelot_key(musical_key),
            )
            seeded = True
        return seeded

    # --- running -----------------------------------------------------------------------------

    async def run(self, bpm: bool = True, genres: bool = True) -> EnrichmentState:
        """Enrich the current track list; returns the state of THIS run.

        If the run is superseded while in flight, the returned state is the abandoned one
        (phase stays RUNNING); the controller's current state is already the new run.
        """
        state = self._state
        if state.token.is_cancelled() or state.phase in (
            EnrichmentPhase.RUNNING,
            EnrichmentPhase.SETTLED,
        ):
            # Settled or already running: start over with the same input.
            state = self._supersede()

        state.phase = EnrichmentPhase.RUNNING
        state.correlation_id = set_correlation_id()
        logger.info(
            f"Enrichment run started: {len(state.tracks)} track(s), "
            f"bpm={'on' if bpm else 'off'}, genres={'on' if genres else 'off'}"
        )

        steps = []
        if bpm:
            steps.append(self._run_bpm(state))
        if genres:
            steps.append(self._run_genres(state))

        # BPM and genres run side by side; one being abandoned must not orphan the other.
        outcomes = await asyncio.gather(*steps, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(
                outcome, EnrichmentCancelledError
            ):
                raise outcome

        if state.token.is_cancelled():
            logger.debug(f"Enrichment run {state.correlation_id} abandoned")
            return state

        state.phase = EnrichmentPhase.SETTLED
        with_bpm = sum(1 for result in state.bpm.values() if result.is_hit)
        logger.info(
            f"Enrichment run settled: {with_bpm} with BPM, "
            f"{state.genre_progress.tagged} tagged"
        )
        return state

    @staticmethod
    def _check(token: CancellationToken) -> None:
        if token.is_cancelled():
            raise EnrichmentCancelledError()

    async def _emit_bpm(self, state: EnrichmentState, completed: int, total: int) -> None:
        state.bpm_progress = BpmProgress(completed=completed, total=total)
        if self.on_bpm_progress is not None:
            await self.on_bpm_progress(state.bpm_progress)

    async def _emit_genres(self, state: EnrichmentState, completed: int, total: int) -> None:
        tagged = sum(1 for result in state.genres.values() if result.genres)
        state.genre_progress = GenreProgress(completed=completed, tagged=tagged, total=total)
        if self.on_genre_progress is not None:
            await self.on_genre_progress(state.genre_progress)

    async def _run_bpm(self, state: EnrichmentState) -> None:
        token = state.token
        total = len(state.tracks)
        to_lookup = [
            track
            for track in state.tracks
            if track.id not in state.bpm or not state.bpm[track.id].is_hit
        ]
        completed = total - len(to_lookup)
        await self._emit_bpm(state, completed, total)

        for batch in _chunks(to_lookup, self.bpm_batch_size):
            self._check(token)
            try:
                results = await self.transport.lookup_bpm(
                    [track.to_request() for track in batch], token.is_cancelled
                )
            except DomainException as e:
                self._check(token)
                logger.warning(f"BPM batch of {len(batch)} track(s) failed: {e}")
                results = []
            except Exception:
                self._check(token)
                logger.exception(f"BPM batch of {len(batch)} track(s) raised unexpectedly")
                results = []

            # Late answer for a superseded run: drop it.
            self._check(token)
            for result in results:
                state.bpm[result.track_id] = _merge_bpm(state.bpm.get(result.track_id), result)
            completed += len(batch)
            await self._emit_bpm(state, completed, total)

    async def _run_genres(self, state: EnrichmentState) -> None:
        token = state.token
        total = len(state.tracks)
        progress = {"completed": 0}
        await self._emit_genres(state, 0, total)

        async def handle(batch: Sequence[Track]) -> None:
            try:
                results = await self.transport.lookup_genres(
                    [track.to_request() for track in batch], token.is_cancelled
                )
            except DomainException as e:
                logger.warning(f"Genre batch of {len(batch)} track(s) failed: {e}")
                results = []
            except Exception:
                logger.exception(f"Genre batch of {len(batch)} track(s) raised unexpectedly")
                results = []

            if token.is_cancelled():
                return
            for result in results:
                state.genres[result.track_id] = result
            progress["completed"] += len(batch)
            await self._emit_genres(state, progress["completed"], total)

        await run_worker_pool(
            _chunks(state.tracks, self.genre_batch_size),
            handle,
            concurrency=self.genre_workers,
            should_stop=token.is_cancelled,
            name="genre-enrichment",
        )
        self._check(token)

    # --- view --------------------------------------------------------------------------------

    def enriched_tracks(self) -> list[EnrichedTrack]:
        """Current library view of the active run (loading flags while it is running)."""
        state = self._state
        return enrich_tracks(state.tracks, state.bpm, state.genres, state.is_enriching)


__all__ = [
    "SEED_SOURCE",
    "EnrichmentController",
    "EnrichmentPhase",
    "EnrichmentState",
    "KeySeed",
]
