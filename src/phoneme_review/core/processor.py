"""
Core processing logic for the phoneme review pipeline.

A processing pass runs normalization, tokenization, word alignment and
phoneme bucketing once over an in-memory document. The pass is synchronous
and never mutates its inputs.
"""

import time
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from phoneme_review.alignment.normalizer import normalize_document
from phoneme_review.alignment.phoneme_bucketing import bucket_phonemes, get_id_factory
from phoneme_review.alignment.tokenizer import tokenize
from phoneme_review.alignment.word_alignment import WordAlignment, align_words
from phoneme_review.config import AlignmentConfig
from phoneme_review.models import NormalizedDocument, ProcessedWord


@dataclass(frozen=True)
class ProcessingResult:
    """Output of a single processing pass.

    Attributes:
        document: The normalized document the pass ran on.
        alignments: Token bindings in textual order.
        words: Processed words with their phonemes, in textual order.
    """

    document: NormalizedDocument
    alignments: list[WordAlignment] = field(default_factory=list)
    words: list[ProcessedWord] = field(default_factory=list)

    @property
    def aligned_count(self) -> int:
        return sum(1 for word in self.words if word.is_aligned)

    @property
    def phoneme_count(self) -> int:
        return sum(len(word.phonemes) for word in self.words)


def process_normalized(
    document: NormalizedDocument, *, config: AlignmentConfig | None = None
) -> ProcessingResult:
    """Align and bucket an already normalized document.

    Args:
        document: Normalized document.
        config: Alignment settings, defaults when omitted.

    Returns:
        The processing result.
    """
    config = config or AlignmentConfig()
    t0 = time.perf_counter()

    tokens = tokenize(document.full_text)
    alignments = align_words(tokens=tokens, words=document.words)
    words = bucket_phonemes(
        alignments=alignments,
        phonemes=document.phonemes,
        ipa_segments=document.ipa_segments,
        tolerance=config.word_tolerance,
        enrichment_tolerance=config.enrichment_tolerance,
        id_factory=get_id_factory(config.phoneme_id_strategy),
    )

    result = ProcessingResult(document=document, alignments=alignments, words=words)
    logger.info(
        f"Processed {len(tokens)} tokens: {result.aligned_count} aligned, "
        f"{result.phoneme_count} phonemes ({document.phoneme_family}) "
        f"in {(time.perf_counter() - t0) * 1000.0:.1f}ms"
    )
    return result


def process_document(raw: Any, *, config: AlignmentConfig | None = None) -> ProcessingResult:
    """Run a complete processing pass over a raw transcription document."""
    config = config or AlignmentConfig()
    document = normalize_document(raw, default_ipa_score=config.default_ipa_score)
    return process_normalized(document, config=config)
