"""Unit tests for Camelot wheel conversion."""

import pytest

from djcrate.domain.value_objects.camelot import (
    KEY_TO_CAMELOT,
    open_key_to_camelot,
    pitch_class_to_camelot,
    pitch_class_to_key,
    to_camelot_key,
)


class TestToCamelotKey:
    """Tests for to_camelot_key()."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("C major", "8B"),
            ("A minor", "8A"),
            ("F# minor", "11A"),
            ("Gb minor", "11A"),
            ("Db major", "3B"),
            ("C# major", "3B"),
            ("c major", "8B"),
            ("A MINOR", "8A"),
            ("Am", "8A"),
            ("am", "8A"),
            ("f#m", "11A"),
            ("C", "8B"),
            ("Bb", "6B"),
            ("D min", "7A"),
            ("E maj", "12B"),
            ("8A", "8A"),
            ("12b", "12B"),
            ("  G major  ", "9B"),
        ],
    )
    def test_known_notations(self, raw: str, expected: str) -> None:
        assert to_camelot_key(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "H major", "not a key", "X#m"])
    def test_unknown_returns_none(self, raw: str | None) -> None:
        assert to_camelot_key(raw) is None

    @pytest.mark.parametrize("raw", ["C major", "am", "F#", "3b", "Eb minor"])
    def test_is_idempotent(self, raw: str) -> None:
        once = to_camelot_key(raw)
        assert once is not None
        assert to_camelot_key(once) == once

    def test_enharmonic_names_agree(self) -> None:
        """Test sharp and flat spellings land on the same code."""
        assert KEY_TO_CAMELOT["G# minor"] == KEY_TO_CAMELOT["Ab minor"] == "1A"
        assert KEY_TO_CAMELOT["A# major"] == KEY_TO_CAMELOT["Bb major"] == "6B"


class TestPitchClass:
    """Tests for pitch class conversion."""

    def test_pitch_class_to_key(self) -> None:
        assert pitch_class_to_key(0, 1) == "C major"
        assert pitch_class_to_key(9, 0) == "A minor"
        assert pitch_class_to_key(6, 0) == "F# minor"

    def test_missing_mode_means_major(self) -> None:
        assert pitch_class_to_key(7, None) == "G major"

    @pytest.mark.parametrize("pitch", [-1, 12, None])
    def test_no_key_detected(self, pitch: int | None) -> None:
        assert pitch_class_to_key(pitch, 1) is None
        assert pitch_class_to_camelot(pitch, 1) is None

    def test_pitch_class_to_camelot(self) -> None:
        assert pitch_class_to_camelot(0, 1) == "8B"
        assert pitch_class_to_camelot(9, 0) == "8A"
        assert pitch_class_to_camelot(1, 1) == "3B"


class TestOpenKey:
    """Tests for open_key_to_camelot()."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1d", "8B"),  # C major
            ("1m", "8A"),  # A minor
            ("6d", "1B"),  # B major
            ("12m", "7A"),  # D minor
            ("8D", "3B"),
        ],
    )
    def test_conversion(self, raw: str, expected: str) -> None:
        assert open_key_to_camelot(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "8A", "13d", "0m", "C major"])
    def test_not_open_key(self, raw: str | None) -> None:
        assert open_key_to_camelot(raw) is None
