"""Evaluation export payloads and IPA transcription assembly."""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from phoneme_review.constants import EXPORT_FILENAME_TEMPLATE
from phoneme_review.models import EvaluationStats, NormalizedDocument
from phoneme_review.views.evaluation import EvaluationBook


class ExportModel(BaseModel):
    """Base model serializing field names in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExportedEnrichment(ExportModel):
    ipa_symbol: str
    orthographic: str | None = None
    linguistic_weight: float | None = None
    confidence: float | None = None
    description: str | None = None


class ExportedEvaluation(ExportModel):
    word: str
    phoneme: str
    start: float
    end: float
    score: float
    is_correct: bool
    phoneme_id: str
    enrichment: ExportedEnrichment | None = None


class ExportedStatistics(ExportModel):
    total: int = 0
    correct: int = 0
    incorrect: int = 0
    not_evaluated: int = 0

    @classmethod
    def from_stats(cls, stats: EvaluationStats) -> "ExportedStatistics":
        return cls(
            total=stats.total,
            correct=stats.correct,
            incorrect=stats.incorrect,
            not_evaluated=stats.not_evaluated,
        )


class EvaluationExport(ExportModel):
    """Serializable snapshot of every labeled phoneme."""

    source_name: str
    evaluated_at: datetime
    evaluations: list[ExportedEvaluation] = Field(default_factory=list)
    statistics: ExportedStatistics = Field(default_factory=ExportedStatistics)

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready document with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExportSink(Protocol):
    """Destination for an export document."""

    def write(self, *, document: dict[str, Any], filename: str) -> str: ...


def build_export(
    *, book: EvaluationBook, source_name: str, now: datetime | None = None
) -> EvaluationExport:
    """Build the export snapshot of all labeled phonemes.

    Args:
        book: Evaluation state of the current pass.
        source_name: Name of the audio or document file being reviewed.
        now: Evaluation timestamp, current UTC time when omitted.

    Returns:
        The export model. Unlabeled phonemes are not included.
    """
    evaluations = []
    for word, phoneme in book.evaluated():
        enrichment = None
        if phoneme.enrichment is not None:
            enrichment = ExportedEnrichment(
                ipa_symbol=phoneme.enrichment.ipa_symbol,
                orthographic=phoneme.enrichment.orthographic,
                linguistic_weight=phoneme.enrichment.linguistic_weight,
                confidence=phoneme.enrichment.confidence,
                description=phoneme.enrichment.description,
            )
        evaluations.append(
            ExportedEvaluation(
                word=word.surface_text,
                phoneme=phoneme.symbol,
                start=phoneme.start,
                end=phoneme.end,
                score=phoneme.score,
                is_correct=bool(phoneme.is_correct),
                phoneme_id=phoneme.id,
                enrichment=enrichment,
            )
        )

    return EvaluationExport(
        source_name=source_name,
        evaluated_at=now or datetime.now(tz=UTC),
        evaluations=evaluations,
        statistics=ExportedStatistics.from_stats(book.stats()),
    )


def export_filename(*, now: datetime | None = None) -> str:
    """Suggested filename for an export taken at ``now``."""
    moment = now or datetime.now(tz=UTC)
    return EXPORT_FILENAME_TEMPLATE.format(timestamp_ms=int(moment.timestamp() * 1000))


def summarize_export(document: Mapping[str, Any]) -> EvaluationStats:
    """Re-derive statistics from an exported document.

    Correct and incorrect counts come from the exported evaluations; the
    unlabeled count is taken from the recorded statistics since unlabeled
    phonemes are not exported.
    """
    evaluations = document.get("evaluations") or []
    correct = sum(1 for e in evaluations if isinstance(e, Mapping) and e.get("isCorrect") is True)
    incorrect = sum(
        1 for e in evaluations if isinstance(e, Mapping) and e.get("isCorrect") is False
    )

    recorded = document.get("statistics")
    not_evaluated = 0
    if isinstance(recorded, Mapping) and isinstance(recorded.get("notEvaluated"), int):
        not_evaluated = recorded["notEvaluated"]

    return EvaluationStats(
        total=correct + incorrect + not_evaluated,
        correct=correct,
        incorrect=incorrect,
        not_evaluated=not_evaluated,
    )


def ipa_transcription(document: NormalizedDocument) -> str:
    """Assemble the IPA transcription of a document.

    Returns:
        Symbols of the IPA family sorted by start, space-joined inside slash
        delimiters, or an empty string when the document has no IPA family.
    """
    if not document.has_ipa or not document.ipa_segments:
        return ""
    symbols = [seg.ipa_symbol for seg in sorted(document.ipa_segments, key=lambda s: s.start)]
    return f"/{' '.join(symbols)}/"
