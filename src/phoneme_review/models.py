"""Models for the phoneme review pipeline.

This module contains the core data structures used throughout the pipeline,
from the timing records extracted out of a raw transcription document to the
processed words and phonemes that are reviewed and labeled.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from phoneme_review.constants import UNALIGNED_TIME

RawDocument = dict[str, Any]


class PhonemeFamily(StrEnum):
    """Which phoneme source family a document resolved to."""

    IPA = "ipa"
    PLAIN = "plain"
    NONE = "none"


class Evaluation(StrEnum):
    """Reviewer verdict for a single phoneme."""

    UNSET = "unset"
    CORRECT = "correct"
    INCORRECT = "incorrect"

    @classmethod
    def from_bool(cls, is_correct: bool | None) -> "Evaluation":
        if is_correct is None:
            return cls.UNSET
        return cls.CORRECT if is_correct else cls.INCORRECT

    def as_bool(self) -> bool | None:
        if self is Evaluation.UNSET:
            return None
        return self is Evaluation.CORRECT


class PhonemeIdStrategy(StrEnum):
    """How phoneme identifiers are generated during a processing pass."""

    RANDOM = "random"
    DETERMINISTIC = "deterministic"


@dataclass(frozen=True)
class TimedWord:
    """Word from the transcription with timing and confidence data.

    Attributes:
        word: The transcribed word text.
        start: Start time in seconds.
        end: End time in seconds.
        score: Confidence score in [0, 1].
    """

    word: str
    start: float
    end: float
    score: float = 0.0

    def __str__(self) -> str:
        return f"{self.word}: {self.start} - {self.end} ({self.score})"


@dataclass(frozen=True)
class IpaEnrichment:
    """Linguistic metadata attached to a phoneme from the IPA family.

    Attributes:
        ipa_symbol: IPA symbol as reported by the producer.
        orthographic: Letters of the word this phoneme realizes.
        linguistic_weight: Producer weight of the phoneme.
        confidence: Producer confidence of the phoneme.
        description: Free-form articulatory description.
    """

    ipa_symbol: str
    orthographic: str | None = None
    linguistic_weight: float | None = None
    confidence: float | None = None
    description: str | None = None


@dataclass(frozen=True)
class IpaSegment:
    """Original entry of the IPA family, kept for enrichment lookups."""

    ipa_symbol: str
    start: float
    end: float
    orthographic: str | None = None
    linguistic_weight: float | None = None
    confidence: float | None = None
    description: str | None = None

    @property
    def enrichment(self) -> IpaEnrichment:
        return IpaEnrichment(
            ipa_symbol=self.ipa_symbol,
            orthographic=self.orthographic,
            linguistic_weight=self.linguistic_weight,
            confidence=self.confidence,
            description=self.description,
        )


@dataclass(frozen=True)
class TimedPhoneme:
    """Phoneme with timing and score.

    Attributes:
        symbol: Phoneme symbol.
        start: Start time in seconds.
        end: End time in seconds.
        score: Confidence score in [0, 1].
    """

    symbol: str
    start: float
    end: float
    score: float = 0.0


@dataclass(frozen=True)
class Token:
    """Contiguous slice of the full text.

    Attributes:
        text: Surface form as it appears in the text.
        offset: Character offset of the slice in the full text.
    """

    text: str
    offset: int


@dataclass(frozen=True)
class NormalizedDocument:
    """Canonical facts extracted from a raw transcription document.

    Attributes:
        full_text: Trimmed transcript text, empty when no source had text.
        words: Timed words sorted by start time.
        phonemes: Timed phonemes from the authoritative family.
        phoneme_family: Which family produced ``phonemes``.
        ipa_segments: IPA family entries in source order, empty unless the
            IPA family is authoritative.
    """

    full_text: str = ""
    words: list[TimedWord] = field(default_factory=list)
    phonemes: list[TimedPhoneme] = field(default_factory=list)
    phoneme_family: PhonemeFamily = PhonemeFamily.NONE
    ipa_segments: list[IpaSegment] = field(default_factory=list)

    @property
    def has_ipa(self) -> bool:
        return self.phoneme_family is PhonemeFamily.IPA

    def __str__(self) -> str:
        return (
            f"NormalizedDocument: {len(self.full_text)} chars, {len(self.words)} words, "
            f"{len(self.phonemes)} phonemes ({self.phoneme_family})"
        )


@dataclass
class ProcessedPhoneme:
    """Phoneme bound to a word, with identity and reviewer verdict.

    Attributes:
        id: Identifier used as the join key for evaluations.
        symbol: Phoneme symbol.
        start: Start time in seconds.
        end: End time in seconds.
        score: Confidence score in [0, 1].
        evaluation: Reviewer verdict.
        enrichment: IPA metadata, when the IPA family supplied it.
    """

    id: str
    symbol: str
    start: float
    end: float
    score: float
    evaluation: Evaluation = Evaluation.UNSET
    enrichment: IpaEnrichment | None = None

    @property
    def is_correct(self) -> bool | None:
        return self.evaluation.as_bool()


@dataclass
class ProcessedWord:
    """Text token with its aligned timing and phonemes.

    A word with ``start == end == -1`` has no timing alignment; it is still
    displayed and carries no phonemes.

    Attributes:
        surface_text: Token text exactly as it appears in the transcript.
        start: Start time in seconds, -1 when unaligned.
        end: End time in seconds, -1 when unaligned.
        score: Confidence score of the bound timed word.
        phonemes: Phonemes bucketed into this word, sorted by start.
    """

    surface_text: str
    start: float
    end: float
    score: float
    phonemes: list[ProcessedPhoneme] = field(default_factory=list)

    @classmethod
    def unaligned(cls, surface_text: str) -> "ProcessedWord":
        return cls(surface_text=surface_text, start=UNALIGNED_TIME, end=UNALIGNED_TIME, score=0.0)

    @property
    def is_aligned(self) -> bool:
        return self.start != UNALIGNED_TIME

    def __str__(self) -> str:
        if not self.is_aligned:
            return f"{self.surface_text}: unaligned"
        return f"{self.surface_text}: {self.start} - {self.end} ({len(self.phonemes)} phonemes)"


@dataclass(frozen=True)
class EvaluationStats:
    """Partition of all processed phonemes by reviewer verdict."""

    total: int = 0
    correct: int = 0
    incorrect: int = 0
    not_evaluated: int = 0
