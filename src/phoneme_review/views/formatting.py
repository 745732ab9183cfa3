"""Display formatting for times and phonemes."""

import math

from phoneme_review.models import ProcessedPhoneme


def format_time(seconds: float) -> str:
    return f"{seconds:.3f}s"


def format_time_display(seconds: float) -> str:
    """Format seconds as ``m:ss``, ``0:00`` when not a number."""
    if seconds is None or math.isnan(seconds):
        return "0:00"
    mins = math.floor(seconds / 60)
    secs = math.floor(seconds % 60)
    return f"{mins}:{secs:02d}"


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def phoneme_tooltip(phoneme: ProcessedPhoneme) -> str:
    """Multi-line description of a phoneme and its IPA metadata."""
    lines = [f"IPA: {phoneme.symbol}", f"Score: {_percent(phoneme.score)}"]

    enrichment = phoneme.enrichment
    if enrichment is not None:
        if enrichment.linguistic_weight is not None:
            lines.append(f"Linguistic Weight: {_percent(enrichment.linguistic_weight)}")
        if enrichment.confidence is not None:
            lines.append(f"Confidence: {_percent(enrichment.confidence)}")
        if enrichment.description:
            lines.append(enrichment.description)

    return "\n".join(lines)
