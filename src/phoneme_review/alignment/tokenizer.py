"""Transcript tokenization for word alignment."""

import re
from typing import Final

from phoneme_review.constants import PUNCTUATION_CHARS
from phoneme_review.models import Token

_PUNCTUATION_CLASS: Final[str] = "[" + re.escape(PUNCTUATION_CHARS) + "]"

# Capturing group keeps the delimiters in re.split output
TOKEN_SPLIT_PATTERN: Final[re.Pattern[str]] = re.compile(rf"(\s+|{_PUNCTUATION_CLASS})")
SEPARATOR_ONLY_PATTERN: Final[re.Pattern[str]] = re.compile(rf"^(?:\s|{_PUNCTUATION_CLASS})+$")
PUNCTUATION_PATTERN: Final[re.Pattern[str]] = re.compile(_PUNCTUATION_CLASS)


def tokenize(full_text: str) -> list[Token]:
    """Split transcript text into word tokens in textual order.

    The text is split on whitespace runs and on each of ``.,!?;:``. Pieces
    that are empty or made only of whitespace and punctuation are dropped;
    surviving pieces keep their original casing and surface form.

    Example: "Ciao, mondo!" -> [Token("Ciao", 0), Token("mondo", 6)]

    Args:
        full_text: The transcript text.

    Returns:
        Word tokens with their character offsets.
    """
    tokens: list[Token] = []
    offset = 0

    for piece in TOKEN_SPLIT_PATTERN.split(full_text):
        piece_offset = offset
        offset += len(piece)

        if not piece.strip() or SEPARATOR_ONLY_PATTERN.match(piece):
            continue
        tokens.append(Token(text=piece, offset=piece_offset))

    return tokens


def normalize_word(word: str) -> str:
    """Normalize a word for comparison: lowercase, punctuation stripped."""
    return PUNCTUATION_PATTERN.sub("", word.lower())
