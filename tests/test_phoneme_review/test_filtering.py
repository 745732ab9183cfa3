"""Test suite for phoneme filtering and review focus."""

import pytest

from phoneme_review.models import ProcessedPhoneme, ProcessedWord
from phoneme_review.views.filtering import (
    ReviewFocus,
    can_mark_phoneme,
    filtered_phonemes,
    filtered_words,
    has_filtered_phonemes,
    phoneme_counts,
    phoneme_matches_filter,
    phonemes_string,
    total_filtered_count,
    word_contains_phoneme,
    word_phoneme_counts,
)


def _phoneme(symbol: str, index: int) -> ProcessedPhoneme:
    return ProcessedPhoneme(id=f"p{index}", symbol=symbol, start=index, end=index + 1, score=0.5)


@pytest.fixture
def words() -> list[ProcessedWord]:
    """Create processed words with repeated symbols."""
    return [
        ProcessedWord(
            "casa", 0.0, 1.0, 0.9, [_phoneme("k", 0), _phoneme("a", 1), _phoneme("A", 2)]
        ),
        ProcessedWord("tu", 1.0, 2.0, 0.9, [_phoneme("t", 3), _phoneme("u", 4)]),
        ProcessedWord.unaligned("ehm"),
    ]


@pytest.mark.unit
class TestFilterHelpers:
    """Test cases for the filter helper functions."""

    def test_filtered_phonemes_case_insensitive(self, words: list[ProcessedWord]) -> None:
        """Test case-insensitive exact matching."""
        assert [p.id for p in filtered_phonemes(words[0].phonemes, "a")] == ["p1", "p2"]
        assert filtered_phonemes(words[0].phonemes, None) == words[0].phonemes

    def test_has_filtered_phonemes(self, words: list[ProcessedWord]) -> None:
        """Test presence check under a filter."""
        assert has_filtered_phonemes(words[0].phonemes, "K")
        assert not has_filtered_phonemes(words[1].phonemes, "k")

    def test_filtered_words(self, words: list[ProcessedWord]) -> None:
        """Test that only words containing the symbol remain."""
        assert [w.surface_text for w in filtered_words(words, "t")] == ["tu"]
        assert filtered_words(words, None) == words

    def test_word_contains_phoneme_without_filter(self, words: list[ProcessedWord]) -> None:
        """Test that every word matches when no filter is active."""
        assert word_contains_phoneme(words[2], None)
        assert not word_contains_phoneme(words[2], "a")

    def test_total_filtered_count(self, words: list[ProcessedWord]) -> None:
        """Test the number of matching phonemes across words."""
        assert total_filtered_count(words, "a") == 2
        assert total_filtered_count(words, None) == 0

    def test_matches_and_can_mark(self, words: list[ProcessedWord]) -> None:
        """Test labeling permission under an active filter."""
        k, a = words[0].phonemes[0], words[0].phonemes[1]

        assert not phoneme_matches_filter(k, None)
        assert can_mark_phoneme(k, None)
        assert can_mark_phoneme(a, "A")
        assert not can_mark_phoneme(k, "a")

    def test_counts(self, words: list[ProcessedWord]) -> None:
        """Test per-symbol and per-word counts."""
        assert phoneme_counts(words) == {"a": 2, "k": 1, "t": 1, "u": 1}
        assert word_phoneme_counts(words) == {"a": 1, "k": 1, "t": 1, "u": 1}

    def test_phonemes_string(self, words: list[ProcessedWord]) -> None:
        """Test space-joined symbols."""
        assert phonemes_string(words[0]) == "k a A"
        assert phonemes_string(words[2]) == ""


@pytest.mark.unit
class TestReviewFocus:
    """Test cases for ReviewFocus."""

    def test_filter_clears_selection(self) -> None:
        """Test that setting a filter clears the selected word."""
        focus = ReviewFocus(selected_word=1)
        focus.set_filter("a")

        assert focus.phoneme_filter == "a"
        assert focus.selected_word is None

    def test_selection_clears_filter(self) -> None:
        """Test that selecting a word clears the filter."""
        focus = ReviewFocus(phoneme_filter="a")
        focus.select_word(0)

        assert focus.selected_word == 0
        assert focus.phoneme_filter is None

    def test_selecting_same_word_toggles(self) -> None:
        """Test that selecting the selected word deselects it."""
        focus = ReviewFocus()
        focus.select_word(2)
        focus.select_word(2)
        assert focus.selected_word is None

    def test_empty_filter_is_inactive(self) -> None:
        """Test that an empty filter string deactivates filtering."""
        focus = ReviewFocus(selected_word=3)
        focus.set_filter("")

        assert focus.phoneme_filter is None
        assert focus.selected_word == 3
