"""Schema normalization for transcription documents.

Transcription producers have shipped several document shapes over time: the
legacy shape wraps everything in a ``result`` field, the current shape puts
fields at the top level, and either may nest words and phonemes inside
``segments``. Each canonical fact (text, words, phonemes) is therefore read
from a prioritized list of source locations; the first location holding a
non-empty array wins and sources are never combined.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Final

from loguru import logger

from phoneme_review.constants import DEFAULT_IPA_SCORE
from phoneme_review.models import (
    IpaSegment,
    NormalizedDocument,
    PhonemeFamily,
    TimedPhoneme,
    TimedWord,
)


class Scope(StrEnum):
    """Where a source location is looked up."""

    DOCUMENT = "doc"
    ROOT = "root"


@dataclass(frozen=True)
class SourceLocation:
    """One place in a raw document where an array of entries may live.

    Attributes:
        scope: Look up on the document itself or on its effective root.
        key: Field holding the array.
        parent: When set, ``key`` is read from every element of the
            ``parent`` array and the results are flattened in order.
    """

    scope: Scope
    key: str
    parent: str | None = None

    def extract(self, *, doc: Mapping[str, Any], root: Mapping[str, Any]) -> list[Any]:
        """Return the entries found at this location, empty when absent."""
        container = doc if self.scope is Scope.DOCUMENT else root
        if self.parent is None:
            return _as_list(container.get(self.key))

        flattened: list[Any] = []
        for segment in _as_list(container.get(self.parent)):
            if isinstance(segment, Mapping):
                flattened.extend(_as_list(segment.get(self.key)))
        return flattened

    def __str__(self) -> str:
        if self.parent is None:
            return f"{self.scope}.{self.key}"
        return f"{self.scope}.{self.parent}[].{self.key}"


WORD_SOURCES: Final[tuple[SourceLocation, ...]] = (
    SourceLocation(Scope.DOCUMENT, "word_segments"),
    SourceLocation(Scope.ROOT, "word_segments"),
    SourceLocation(Scope.ROOT, "words", parent="segments"),
    SourceLocation(Scope.ROOT, "words", parent="aligned_segments"),
)

IPA_SOURCES: Final[tuple[SourceLocation, ...]] = (
    SourceLocation(Scope.DOCUMENT, "ipa_segments"),
    SourceLocation(Scope.ROOT, "ipa_segments"),
    SourceLocation(Scope.ROOT, "ipa_phoneme_segments"),
    SourceLocation(Scope.ROOT, "ipa_segments", parent="segments"),
)

PLAIN_PHONEME_SOURCES: Final[tuple[SourceLocation, ...]] = (
    SourceLocation(Scope.DOCUMENT, "phoneme_segments"),
    SourceLocation(Scope.ROOT, "phoneme_segments"),
    SourceLocation(Scope.ROOT, "phonemes", parent="segments"),
)

TEXT_SEGMENT_SOURCES: Final[tuple[str, ...]] = ("segments", "asr_segments")


def resolve_root(doc: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return ``doc["result"]`` when it is a mapping, else the document itself."""
    result = doc.get("result")
    if isinstance(result, Mapping):
        return result
    return doc


def resolve_first(
    *,
    sources: Sequence[SourceLocation],
    doc: Mapping[str, Any],
    root: Mapping[str, Any],
) -> tuple[SourceLocation | None, list[Any]]:
    """Return the first source location holding a non-empty array.

    Args:
        sources: Locations in priority order.
        doc: The raw document.
        root: The effective root of the document.

    Returns:
        Tuple of (winning location, its entries), or (None, []) when every
        location is empty or absent.
    """
    for source in sources:
        entries = source.extract(doc=doc, root=root)
        if entries:
            return source, entries
    return None, []


def resolve_full_text(*, doc: Mapping[str, Any], root: Mapping[str, Any]) -> str:
    """Resolve the transcript text.

    Order: ``root.text``, ``doc.text``, the space-joined ``root.segments[].text``,
    the space-joined ``root.asr_segments[].text``. The first non-empty value
    wins.
    """
    for candidate in (root.get("text"), doc.get("text")):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()

    for parent in TEXT_SEGMENT_SOURCES:
        joined = _join_segment_texts(segments=_as_list(root.get(parent)))
        if joined:
            return joined

    return ""


def extract_words(*, doc: Mapping[str, Any], root: Mapping[str, Any]) -> list[TimedWord]:
    """Extract timed words from the first populated word source, sorted by start."""
    source, entries = resolve_first(sources=WORD_SOURCES, doc=doc, root=root)
    if source is None:
        logger.debug("No word timing source found")
        return []

    words = [word for word in (_coerce_word(entry) for entry in entries) if word is not None]
    skipped = len(entries) - len(words)
    if skipped:
        logger.debug(f"Skipped {skipped} word entries without usable timing from {source}")

    logger.debug(f"Resolved {len(words)} words from {source}")
    # sorted() is stable: ties keep input order
    return sorted(words, key=lambda w: w.start)


def extract_phonemes(
    *,
    doc: Mapping[str, Any],
    root: Mapping[str, Any],
    default_ipa_score: float = DEFAULT_IPA_SCORE,
) -> tuple[PhonemeFamily, list[TimedPhoneme], list[IpaSegment]]:
    """Extract phonemes, preferring the IPA family over the plain family.

    Returns:
        Tuple of (family tag, phonemes, retained IPA segments). IPA segments
        are only retained when the IPA family is authoritative.
    """
    source, entries = resolve_first(sources=IPA_SOURCES, doc=doc, root=root)
    if source is not None:
        segments = [seg for seg in (_coerce_ipa_segment(entry) for entry in entries) if seg]
        phonemes = [
            TimedPhoneme(
                symbol=seg.ipa_symbol,
                start=seg.start,
                end=seg.end,
                score=_first_present(
                    seg.linguistic_weight, seg.confidence, default=default_ipa_score
                ),
            )
            for seg in segments
        ]
        logger.debug(f"Resolved {len(phonemes)} IPA phonemes from {source}")
        return PhonemeFamily.IPA, phonemes, segments

    source, entries = resolve_first(sources=PLAIN_PHONEME_SOURCES, doc=doc, root=root)
    if source is not None:
        phonemes = [p for p in (_coerce_plain_phoneme(entry) for entry in entries) if p]
        logger.debug(f"Resolved {len(phonemes)} plain phonemes from {source}")
        return PhonemeFamily.PLAIN, phonemes, []

    logger.debug("No phoneme source found")
    return PhonemeFamily.NONE, [], []


def normalize_document(
    doc: Any, *, default_ipa_score: float = DEFAULT_IPA_SCORE
) -> NormalizedDocument:
    """Extract full text, timed words and timed phonemes from a raw document.

    Absent arrays resolve to empty results; this function does not raise for
    missing or malformed optional fields.

    Args:
        doc: Parsed transcription document in any of the known shapes.
        default_ipa_score: Score for IPA entries without weight or confidence.

    Returns:
        The normalized document.
    """
    if not isinstance(doc, Mapping):
        logger.warning(f"Expected a mapping document, got {type(doc).__name__}")
        return NormalizedDocument()

    root = resolve_root(doc)
    full_text = resolve_full_text(doc=doc, root=root)
    words = extract_words(doc=doc, root=root)
    family, phonemes, ipa_segments = extract_phonemes(
        doc=doc, root=root, default_ipa_score=default_ipa_score
    )

    normalized = NormalizedDocument(
        full_text=full_text,
        words=words,
        phonemes=phonemes,
        phoneme_family=family,
        ipa_segments=ipa_segments,
    )
    logger.debug(str(normalized))
    return normalized


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _first_present(*values: float | None, default: float) -> float:
    for value in values:
        if value is not None:
            return value
    return default


def _interval(entry: Mapping[str, Any]) -> tuple[float, float] | None:
    start = _as_float(entry.get("start"))
    end = _as_float(entry.get("end"))
    if start is None or end is None:
        return None
    # start <= end holds for every timed record
    return (start, end) if start <= end else (end, start)


def _join_segment_texts(*, segments: list[Any]) -> str:
    texts = []
    for segment in segments:
        if isinstance(segment, Mapping):
            text = _as_str(segment.get("text"))
            if text and text.strip():
                texts.append(text.strip())
    return " ".join(texts)


def _coerce_word(entry: Any) -> TimedWord | None:
    if not isinstance(entry, Mapping):
        return None
    word = _as_str(entry.get("word"))
    interval = _interval(entry)
    if word is None or interval is None:
        return None
    return TimedWord(
        word=word,
        start=interval[0],
        end=interval[1],
        score=_first_present(_as_float(entry.get("score")), default=0.0),
    )


def _coerce_ipa_segment(entry: Any) -> IpaSegment | None:
    if not isinstance(entry, Mapping):
        return None
    interval = _interval(entry)
    if interval is None:
        return None
    return IpaSegment(
        ipa_symbol=_as_str(entry.get("ipa_symbol")) or "",
        start=interval[0],
        end=interval[1],
        orthographic=_as_str(entry.get("orthographic")),
        linguistic_weight=_as_float(entry.get("linguistic_weight")),
        confidence=_as_float(entry.get("confidence")),
        description=_as_str(entry.get("description")),
    )


def _coerce_plain_phoneme(entry: Any) -> TimedPhoneme | None:
    if not isinstance(entry, Mapping):
        return None
    interval = _interval(entry)
    if interval is None:
        return None
    return TimedPhoneme(
        symbol=_as_str(entry.get("phoneme")) or "",
        start=interval[0],
        end=interval[1],
        score=_first_present(_as_float(entry.get("score")), default=0.0),
    )
