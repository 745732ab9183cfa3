"""Assignment of timed phonemes to aligned words by time overlap."""

import uuid
from collections.abc import Callable
from typing import Final

from loguru import logger

from phoneme_review.alignment.word_alignment import WordAlignment
from phoneme_review.constants import ENRICHMENT_TOLERANCE, WORD_PHONEME_TOLERANCE
from phoneme_review.models import (
    IpaEnrichment,
    IpaSegment,
    PhonemeIdStrategy,
    ProcessedPhoneme,
    ProcessedWord,
    TimedPhoneme,
    TimedWord,
)

PhonemeIdFactory = Callable[[int, int, TimedPhoneme], str]

PHONEME_ID_NAMESPACE: Final[uuid.UUID] = uuid.UUID("5b0c7c1e-2f4d-4d63-9a57-3f1f0e6b8a21")


def random_phoneme_id(word_index: int, phoneme_index: int, phoneme: TimedPhoneme) -> str:
    """Return a fresh random identifier, unique across passes."""
    return str(uuid.uuid4())


def deterministic_phoneme_id(word_index: int, phoneme_index: int, phoneme: TimedPhoneme) -> str:
    """Return an identifier derived from the phoneme's position and content.

    Reprocessing the same document yields the same identifiers.
    """
    name = (
        f"{word_index}:{phoneme_index}:{phoneme.start:.6f}:{phoneme.end:.6f}:{phoneme.symbol}"
    )
    return str(uuid.uuid5(PHONEME_ID_NAMESPACE, name))


def get_id_factory(strategy: PhonemeIdStrategy) -> PhonemeIdFactory:
    if strategy is PhonemeIdStrategy.DETERMINISTIC:
        return deterministic_phoneme_id
    return random_phoneme_id


def phoneme_in_word(
    *, phoneme: TimedPhoneme, word: TimedWord, tolerance: float = WORD_PHONEME_TOLERANCE
) -> bool:
    """Whether a phoneme belongs to a word's interval.

    The phoneme must lie inside the word interval widened by ``tolerance`` on
    both sides, and must not lie entirely before or after the unwidened
    interval. Both clauses are required: the widened bounds alone admit
    phonemes touching the word only inside the tolerance band.
    """
    within_bounds = phoneme.start >= word.start - tolerance and phoneme.end <= word.end + tolerance
    disjoint = phoneme.end < word.start or phoneme.start > word.end
    return within_bounds and not disjoint


def select_word_phonemes(
    *,
    phonemes: list[TimedPhoneme],
    word: TimedWord,
    tolerance: float = WORD_PHONEME_TOLERANCE,
) -> list[TimedPhoneme]:
    """Return the phonemes belonging to ``word``, stably sorted by start."""
    selected = [p for p in phonemes if phoneme_in_word(phoneme=p, word=word, tolerance=tolerance)]
    return sorted(selected, key=lambda p: p.start)


def find_enrichment(
    *,
    phoneme: TimedPhoneme,
    ipa_segments: list[IpaSegment],
    tolerance: float = ENRICHMENT_TOLERANCE,
) -> IpaEnrichment | None:
    """Find IPA metadata for a phoneme.

    An IPA segment matches when both its start and end are strictly within
    ``tolerance`` of the phoneme's. A matching segment with the same symbol
    is preferred; otherwise the first timestamp-only match is used.

    Args:
        phoneme: The phoneme to enrich.
        ipa_segments: IPA segments sorted by start.
        tolerance: Allowed timestamp difference in seconds.

    Returns:
        The enrichment, or None when no segment matches.
    """
    timestamp_matches = [
        seg
        for seg in ipa_segments
        if abs(seg.start - phoneme.start) < tolerance and abs(seg.end - phoneme.end) < tolerance
    ]
    for seg in timestamp_matches:
        if seg.ipa_symbol == phoneme.symbol:
            return seg.enrichment
    if timestamp_matches:
        return timestamp_matches[0].enrichment
    return None


def bucket_phonemes(
    *,
    alignments: list[WordAlignment],
    phonemes: list[TimedPhoneme],
    ipa_segments: list[IpaSegment] | None = None,
    tolerance: float = WORD_PHONEME_TOLERANCE,
    enrichment_tolerance: float = ENRICHMENT_TOLERANCE,
    id_factory: PhonemeIdFactory = random_phoneme_id,
) -> list[ProcessedWord]:
    """Build processed words, attaching overlapping phonemes to aligned ones.

    Unaligned tokens always get an empty phoneme list. Every attached
    phoneme gets a new identifier from ``id_factory`` and an unset
    evaluation.

    Args:
        alignments: Token bindings in textual order.
        phonemes: Timed phonemes from the authoritative family.
        ipa_segments: IPA segments for enrichment lookups, if any.
        tolerance: Word interval widening in seconds.
        enrichment_tolerance: Timestamp tolerance for IPA enrichment.
        id_factory: Generator of phoneme identifiers.

    Returns:
        Processed words in textual order.
    """
    sorted_segments = sorted(ipa_segments or [], key=lambda seg: seg.start)
    processed_words: list[ProcessedWord] = []
    attached = 0

    for word_index, alignment in enumerate(alignments):
        processed = alignment.to_processed_word()

        if alignment.timed_word is not None:
            selected = select_word_phonemes(
                phonemes=phonemes, word=alignment.timed_word, tolerance=tolerance
            )
            processed.phonemes = [
                ProcessedPhoneme(
                    id=id_factory(word_index, phoneme_index, phoneme),
                    symbol=phoneme.symbol,
                    start=phoneme.start,
                    end=phoneme.end,
                    score=phoneme.score,
                    enrichment=(
                        find_enrichment(
                            phoneme=phoneme,
                            ipa_segments=sorted_segments,
                            tolerance=enrichment_tolerance,
                        )
                        if sorted_segments
                        else None
                    ),
                )
                for phoneme_index, phoneme in enumerate(selected)
            ]
            attached += len(processed.phonemes)

        processed_words.append(processed)

    logger.debug(
        f"Bucketed {attached} phoneme slots from {len(phonemes)} phonemes "
        f"into {len(processed_words)} words"
    )
    return processed_words
