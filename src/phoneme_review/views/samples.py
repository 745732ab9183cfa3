"""Reference sample sentences.

A sample file holds alternating lines: the sentence text followed by its IPA
rendering. Blank lines are ignored and a trailing unpaired line is dropped.
"""

import random
import re
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from phoneme_review.constants import PUNCTUATION_CHARS
from phoneme_review.exceptions import DocumentError

_WHITESPACE_PATTERN = re.compile(r"\s+")
_PUNCTUATION_PATTERN = re.compile(f"[{re.escape(PUNCTUATION_CHARS)}]")


@dataclass(frozen=True)
class SampleSentence:
    """Sentence paired with its reference IPA rendering.

    Attributes:
        text: Sentence to be read aloud.
        ipa: Reference IPA rendering.
    """

    text: str
    ipa: str


def parse_samples(content: str) -> list[SampleSentence]:
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    return [
        SampleSentence(text=lines[i], ipa=lines[i + 1]) for i in range(0, len(lines) - 1, 2)
    ]


def load_samples(path: str | Path) -> list[SampleSentence]:
    """Read and parse a sample file.

    Raises:
        DocumentError: If the file is missing, empty or holds no pairs.
    """
    sample_path = Path(path)
    if not sample_path.exists():
        raise DocumentError(msg=f"Sample file not found: {sample_path}")

    content = sample_path.read_text(encoding="utf-8")
    if not content.strip():
        raise DocumentError(msg=f"Sample file {sample_path.name} is empty")

    samples = parse_samples(content)
    if not samples:
        raise DocumentError(msg=f"No sentences found in {sample_path.name}")

    logger.debug(f"Loaded {len(samples)} samples from {sample_path}")
    return samples


def pick_sample(
    samples: list[SampleSentence], *, rng: random.Random | None = None
) -> SampleSentence | None:
    if not samples:
        return None
    return (rng or random).choice(samples)


def normalize_sentence(text: str) -> str:
    collapsed = _WHITESPACE_PATTERN.sub(" ", text.lower().strip())
    return _PUNCTUATION_PATTERN.sub("", collapsed)


def transcript_matches_sample(transcript: str, sample: SampleSentence | None) -> bool:
    """Whether a transcript reads the sample, ignoring case, spacing and punctuation."""
    if sample is None or not sample.text or not transcript:
        return False
    return normalize_sentence(transcript) == normalize_sentence(sample.text)
