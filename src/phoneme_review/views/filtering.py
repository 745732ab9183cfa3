"""Phoneme filter and word selection over processed words.

All symbol comparisons are case-insensitive exact matches.
"""

from collections import Counter
from dataclasses import dataclass

from loguru import logger

from phoneme_review.models import NormalizedDocument, ProcessedPhoneme, ProcessedWord


def unique_phonemes(document: NormalizedDocument) -> list[str]:
    """Lowercased, deduplicated, sorted symbols of the authoritative family."""
    return sorted({p.symbol.lower() for p in document.phonemes if p.symbol})


def phoneme_matches_filter(phoneme: ProcessedPhoneme, phoneme_filter: str | None) -> bool:
    """True only when a filter is active and the phoneme matches it."""
    if not phoneme_filter:
        return False
    return phoneme.symbol.lower() == phoneme_filter.lower()


def can_mark_phoneme(phoneme: ProcessedPhoneme, phoneme_filter: str | None) -> bool:
    """With an active filter only matching phonemes may be labeled."""
    if not phoneme_filter:
        return True
    return phoneme_matches_filter(phoneme, phoneme_filter)


def filtered_phonemes(
    phonemes: list[ProcessedPhoneme], phoneme_filter: str | None
) -> list[ProcessedPhoneme]:
    if not phoneme_filter:
        return phonemes
    return [p for p in phonemes if phoneme_matches_filter(p, phoneme_filter)]


def has_filtered_phonemes(phonemes: list[ProcessedPhoneme], phoneme_filter: str | None) -> bool:
    return len(filtered_phonemes(phonemes, phoneme_filter)) > 0


def word_contains_phoneme(word: ProcessedWord, phoneme_filter: str | None) -> bool:
    if not phoneme_filter:
        return True
    return any(phoneme_matches_filter(p, phoneme_filter) for p in word.phonemes)


def filtered_words(words: list[ProcessedWord], phoneme_filter: str | None) -> list[ProcessedWord]:
    if not phoneme_filter:
        return words
    return [w for w in words if word_contains_phoneme(w, phoneme_filter)]


def total_filtered_count(words: list[ProcessedWord], phoneme_filter: str | None) -> int:
    """Number of phonemes across all words matching the filter, 0 without one."""
    if not phoneme_filter:
        return 0
    return sum(len(filtered_phonemes(w.phonemes, phoneme_filter)) for w in words)


def phoneme_counts(words: list[ProcessedWord]) -> dict[str, int]:
    """Occurrences of each lowercased symbol across processed words."""
    counts = Counter(p.symbol.lower() for w in words for p in w.phonemes)
    return dict(sorted(counts.items()))


def word_phoneme_counts(words: list[ProcessedWord]) -> dict[str, int]:
    """Number of distinct words containing each lowercased symbol."""
    counts: Counter[str] = Counter()
    for word in words:
        counts.update({p.symbol.lower() for p in word.phonemes})
    return dict(sorted(counts.items()))


def phonemes_string(word: ProcessedWord) -> str:
    return " ".join(p.symbol for p in word.phonemes)


@dataclass
class ReviewFocus:
    """Single point of focus: either a phoneme filter or a selected word.

    Attributes:
        phoneme_filter: Active symbol filter, None when inactive.
        selected_word: Index of the selected word in the processed list.
    """

    phoneme_filter: str | None = None
    selected_word: int | None = None

    def set_filter(self, phoneme: str | None) -> None:
        self.phoneme_filter = phoneme or None
        if self.phoneme_filter and self.selected_word is not None:
            logger.debug(f"Filter '{phoneme}' set, clearing selected word {self.selected_word}")
            self.selected_word = None

    def select_word(self, index: int | None) -> None:
        """Toggle selection of a word; selecting clears the filter."""
        if index is None or index == self.selected_word:
            self.selected_word = None
            return
        self.selected_word = index
        self.phoneme_filter = None

    def reset(self) -> None:
        self.phoneme_filter = None
        self.selected_word = None
