"""Unit tests for enrichment DTOs."""

import pytest

from djcrate.domain.dtos import (
    NO_SOURCE,
    CacheRecord,
    GenreScope,
    LookupRequest,
    LookupResult,
    Track,
)
from djcrate.domain.exceptions import ValidationError


class TestLookupRequest:
    """Tests for LookupRequest validation."""

    def test_empty_track_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LookupRequest("", "Title", "Artist")

    def test_track_to_request(self) -> None:
        track = Track(id="abc", name="Strobe", artist="deadmau5", album="For Lack")
        assert track.to_request() == LookupRequest("abc", "Strobe", "deadmau5")


class TestLookupResult:
    """Tests for LookupResult helpers."""

    def test_empty_uses_sentinel_source(self) -> None:
        result = LookupResult.empty("t1")
        assert result.source == NO_SOURCE == "none"
        assert not result.is_hit

    def test_empty_with_source_tag(self) -> None:
        assert LookupResult.empty("t1", "soundnet").source == "soundnet"

    def test_hit_requires_bpm(self) -> None:
        assert LookupResult("t1", "getsongbpm", bpm=128.0).is_hit
        assert not LookupResult("t1", "getsongbpm", musical_key="A minor").is_hit

    def test_with_track_id_keeps_data(self) -> None:
        original = LookupResult("t1", "getsongbpm", bpm=128.0, camelot_key="8A")
        rebound = original.with_track_id("t9")
        assert rebound.track_id == "t9"
        assert rebound.source == "getsongbpm"
        assert rebound.bpm == 128.0
        assert original.track_id == "t1"


class TestCacheRecordMerge:
    """Tests for the field-level merge rule."""

    def test_none_never_overwrites(self) -> None:
        existing = CacheRecord(
            lookup_key="k",
            track_name="t",
            artist_name="a",
            bpm=128.0,
            musical_key="A minor",
            camelot_key="8A",
            bpm_source="getsongbpm",
        )
        genres_only = CacheRecord(
            lookup_key="k",
            track_name="t",
            artist_name="a",
            genres=["house"],
            genre_source="musicbrainz",
        )

        merged = genres_only.merged_over(existing)

        assert merged.bpm == 128.0
        assert merged.camelot_key == "8A"
        assert merged.bpm_source == "getsongbpm"
        assert merged.genres == ["house"]
        assert merged.genre_source == "musicbrainz"

    def test_empty_genres_is_data(self) -> None:
        """Test "checked, nothing found" replaces older genres."""
        existing = CacheRecord("k", "t", "a", genres=["pop"], genre_source="getsongbpm")
        update = CacheRecord("k", "t", "a", genres=[], genre_source="musicbrainz")

        merged = update.merged_over(existing)

        assert merged.genres == []
        assert merged.genre_source == "musicbrainz"

    def test_updated_at_refreshed(self) -> None:
        existing = CacheRecord("k", "t", "a", bpm=100.0)
        update = CacheRecord("k", "t", "a", bpm=101.0)
        merged = update.merged_over(existing)
        assert merged.updated_at >= existing.updated_at
        assert merged.bpm == 101.0


class TestGenreScope:
    def test_only_per_artist_slow_is_slow(self) -> None:
        assert GenreScope.PER_ARTIST_SLOW.is_slow
        assert not GenreScope.PER_ARTIST_FAST.is_slow
        assert not GenreScope.PER_TRACK_FAST.is_slow
