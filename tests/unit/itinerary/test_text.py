"""Unit tests for text normalisation helpers."""

import pytest

from chauffeur.itinerary.text import (
    contains_either,
    contains_phrase,
    is_blank,
    normalize_text,
    normalize_time,
    significant_words,
)


class TestNormalizeText:
    """Tests for normalize_text and is_blank."""

    def test_casefold_and_collapse(self) -> None:
        """Case and runs of whitespace are ignored."""
        assert normalize_text("  The   SAVOY\n") == "the savoy"

    def test_none(self) -> None:
        """None becomes an empty string."""
        assert normalize_text(None) == ""

    def test_is_blank(self) -> None:
        """None and whitespace-only strings are blank; other values are not."""
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank("x")
        assert not is_blank(0)


class TestContainment:
    """Tests for containment helpers."""

    def test_either_direction(self) -> None:
        """Containment works both ways."""
        assert contains_either("Savoy", "The Savoy, Strand")
        assert contains_either("The Savoy, Strand", "savoy")

    def test_empty_never_matches(self) -> None:
        """An empty needle is not contained in everything."""
        assert not contains_either("", "The Savoy")
        assert not contains_either(None, "The Savoy")

    def test_phrase_needs_whole_words(self) -> None:
        """Phrases only match on word boundaries."""
        assert contains_phrase("Change the pick up time", "pick up")
        assert not contains_phrase("London", "land")
        assert not contains_phrase("Portobello Road", "port")

    def test_significant_words(self) -> None:
        """Short filler words are dropped."""
        assert significant_words("The Hotel on Park Lane") == ["the", "hotel", "park", "lane"]
        assert significant_words("a b, cd") == []


class TestNormalizeTime:
    """Tests for normalize_time."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("6", "06:00"),
            ("6:30", "06:30"),
            ("06.30", "06:30"),
            ("6am", "06:00"),
            ("6:30 pm", "18:30"),
            ("12am", "00:00"),
            ("12pm", "12:00"),
            ("18h30", "18:30"),
            (" 21:05 ", "21:05"),
        ],
    )
    def test_formats(self, raw: str, expected: str) -> None:
        """Common time spellings normalise to HH:MM."""
        assert normalize_time(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "  ", "null", "N/A"])
    def test_not_mentioned(self, raw: str | None) -> None:
        """Empty and placeholder values mean no time."""
        assert normalize_time(raw) is None

    def test_unparsable_kept_as_text(self) -> None:
        """Text that is not a time is returned stripped."""
        assert normalize_time(" after lunch ") == "after lunch"
        assert normalize_time("25:00") == "25:00"
