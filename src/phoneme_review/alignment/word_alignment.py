"""Binding of transcript tokens to timed words."""

from collections import defaultdict
from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from phoneme_review.alignment.tokenizer import normalize_word
from phoneme_review.models import ProcessedWord, TimedWord, Token


class MatchStrategy(StrEnum):
    """How a token was bound to a timed word."""

    SEQUENTIAL = "sequential"
    FALLBACK = "fallback"
    UNALIGNED = "unaligned"


@dataclass(frozen=True)
class WordAlignment:
    """Binding of a text token to a timed word.

    Attributes:
        token: The text token.
        timed_word: Bound timing record, None when the token is unaligned.
        strategy: Which rule produced the binding.
    """

    token: Token
    timed_word: TimedWord | None
    strategy: MatchStrategy

    @property
    def is_aligned(self) -> bool:
        return self.timed_word is not None

    def to_processed_word(self) -> ProcessedWord:
        """Return the processed word for this binding, without phonemes."""
        if self.timed_word is None:
            return ProcessedWord.unaligned(self.token.text)
        return ProcessedWord(
            surface_text=self.token.text,
            start=self.timed_word.start,
            end=self.timed_word.end,
            score=self.timed_word.score,
        )


def build_word_index(*, words: list[TimedWord]) -> dict[str, list[TimedWord]]:
    """Group timed words by normalized form, keeping first-seen order per key."""
    index: dict[str, list[TimedWord]] = defaultdict(list)
    for word in words:
        index[normalize_word(word.word)].append(word)
    return dict(index)


def align_words(*, tokens: list[Token], words: list[TimedWord]) -> list[WordAlignment]:
    """Bind each text token to a timed word.

    A cursor walks the time-sorted words. For every token the word under the
    cursor is tried first; on a match the cursor advances. Otherwise the
    token is looked up in an index of all words by normalized form and bound
    to the first entry found there, leaving the cursor in place. Tokens with
    no candidate are unaligned.

    The index fallback is best-effort: identical repeated words that fall out
    of sequence all bind to the first occurrence's timing.

    Args:
        tokens: Text tokens in textual order.
        words: Timed words sorted by start time.

    Returns:
        One alignment per token, in token order.
    """
    index = build_word_index(words=words)
    alignments: list[WordAlignment] = []
    cursor = 0

    for token in tokens:
        normalized = normalize_word(token.text)

        if cursor < len(words) and normalized == normalize_word(words[cursor].word):
            alignments.append(WordAlignment(token, words[cursor], MatchStrategy.SEQUENTIAL))
            cursor += 1
            continue

        candidates = index.get(normalized)
        if candidates:
            alignments.append(WordAlignment(token, candidates[0], MatchStrategy.FALLBACK))
            continue

        alignments.append(WordAlignment(token, None, MatchStrategy.UNALIGNED))

    _log_alignment_summary(alignments=alignments, word_count=len(words))
    return alignments


def _log_alignment_summary(*, alignments: list[WordAlignment], word_count: int) -> None:
    counts = {strategy: 0 for strategy in MatchStrategy}
    for alignment in alignments:
        counts[alignment.strategy] += 1
    logger.debug(
        f"Aligned {len(alignments)} tokens against {word_count} timed words: "
        f"{counts[MatchStrategy.SEQUENTIAL]} sequential, "
        f"{counts[MatchStrategy.FALLBACK]} fallback, "
        f"{counts[MatchStrategy.UNALIGNED]} unaligned"
    )
