"""
Test suite for word alignment between transcript tokens and timed words.

This module tests the sequential cursor match, the normalized-form index
fallback and the unaligned state.
"""

import pytest

from phoneme_review.alignment.tokenizer import tokenize
from phoneme_review.alignment.word_alignment import (
    MatchStrategy,
    align_words,
    build_word_index,
)
from phoneme_review.models import TimedWord


@pytest.mark.unit
class TestAlignWords:
    """Test cases for align_words."""

    def test_perfect_sequential_match(self, sample_timed_words: list[TimedWord]) -> None:
        """Test that matching tokens bind sequentially."""
        alignments = align_words(tokens=tokenize("Ciao mondo bello"), words=sample_timed_words)

        assert [a.strategy for a in alignments] == [MatchStrategy.SEQUENTIAL] * 3
        assert [a.timed_word for a in alignments] == sample_timed_words

    def test_punctuation_and_case_ignored(self, sample_timed_words: list[TimedWord]) -> None:
        """Test that normalization ignores case and punctuation."""
        alignments = align_words(tokens=tokenize("CIAO, mondo; bello!"), words=sample_timed_words)
        assert all(a.is_aligned for a in alignments)

    def test_no_timed_words_leaves_all_unaligned(self) -> None:
        """Test that tokens without timed words are unaligned."""
        alignments = align_words(tokens=tokenize("hello world"), words=[])

        assert [a.strategy for a in alignments] == [MatchStrategy.UNALIGNED] * 2
        processed = [a.to_processed_word() for a in alignments]
        assert all(w.start == -1 and w.end == -1 and w.score == 0 for w in processed)
        assert all(w.phonemes == [] for w in processed)

    def test_repeated_words_in_sequence(self) -> None:
        """Test that repeated words bind to successive timings."""
        words = [TimedWord("no", 0.0, 0.3, 0.9), TimedWord("no", 0.5, 0.8, 0.8)]
        alignments = align_words(tokens=tokenize("no no"), words=words)

        assert [a.timed_word for a in alignments] == words
        assert [a.strategy for a in alignments] == [MatchStrategy.SEQUENTIAL] * 2

    def test_fallback_binds_first_occurrence(self) -> None:
        """Test that an out-of-sequence token binds to the first indexed word."""
        words = [
            TimedWord("a", 0.0, 0.2),
            TimedWord("b", 0.3, 0.5),
            TimedWord("a", 0.6, 0.8),
        ]
        alignments = align_words(tokens=tokenize("b a a"), words=words)

        assert alignments[0].strategy is MatchStrategy.FALLBACK
        assert alignments[0].timed_word == words[1]
        # cursor still at index 0, so the next "a" matches sequentially
        assert alignments[1].strategy is MatchStrategy.SEQUENTIAL
        assert alignments[1].timed_word == words[0]
        assert alignments[2].strategy is MatchStrategy.FALLBACK
        assert alignments[2].timed_word == words[0]

    def test_unknown_token_does_not_advance_cursor(
        self, sample_timed_words: list[TimedWord]
    ) -> None:
        """Test that an unaligned token leaves the cursor in place."""
        alignments = align_words(
            tokens=tokenize("ciao ehm mondo bello"), words=sample_timed_words
        )

        assert [a.strategy for a in alignments] == [
            MatchStrategy.SEQUENTIAL,
            MatchStrategy.UNALIGNED,
            MatchStrategy.SEQUENTIAL,
            MatchStrategy.SEQUENTIAL,
        ]

    def test_surrounding_whitespace_not_ignored(self) -> None:
        """Test that a timed word padded with whitespace does not match its token."""
        words = [TimedWord(" ciao", 0.0, 0.5, 0.9)]

        alignment = align_words(tokens=tokenize("ciao"), words=words)[0]

        assert alignment.strategy is MatchStrategy.UNALIGNED
        assert alignment.timed_word is None

    def test_one_alignment_per_token(self, sample_timed_words: list[TimedWord]) -> None:
        """Test that the output length equals the token count."""
        tokens = tokenize("x ciao y mondo z")
        assert len(align_words(tokens=tokens, words=sample_timed_words)) == len(tokens)

    def test_processed_word_keeps_surface_form(self, sample_timed_words: list[TimedWord]) -> None:
        """Test that processed words carry token text and timed word timing."""
        alignment = align_words(tokens=tokenize("Ciao"), words=sample_timed_words)[0]
        processed = alignment.to_processed_word()

        assert processed.surface_text == "Ciao"
        assert (processed.start, processed.end, processed.score) == (0.0, 0.5, 0.95)


@pytest.mark.unit
class TestBuildWordIndex:
    """Test cases for build_word_index."""

    def test_groups_by_normalized_form(self) -> None:
        """Test grouping with first-seen order per key."""
        words = [TimedWord("Hi!", 0, 1), TimedWord("there", 1, 2), TimedWord("hi", 2, 3)]
        index = build_word_index(words=words)

        assert list(index) == ["hi", "there"]
        assert index["hi"] == [words[0], words[2]]
