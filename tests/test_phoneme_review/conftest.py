"""Pytest configuration and fixtures for the phoneme review tests."""

from typing import Any

import pytest

from phoneme_review.config import AlignmentConfig, ReviewConfig, ServiceConfig
from phoneme_review.models import PhonemeIdStrategy, TimedPhoneme, TimedWord


@pytest.fixture
def sample_timed_words() -> list[TimedWord]:
    """Create timed words for 'ciao mondo bello'."""
    return [
        TimedWord("ciao", 0.0, 0.5, 0.95),
        TimedWord("mondo", 0.6, 1.2, 0.9),
        TimedWord("bello", 1.3, 1.8, 0.85),
    ]


@pytest.fixture
def sample_timed_phonemes() -> list[TimedPhoneme]:
    """Create phonemes covering the sample timed words."""
    return [
        TimedPhoneme("tʃ", 0.0, 0.1, 0.9),
        TimedPhoneme("a", 0.1, 0.3, 0.8),
        TimedPhoneme("o", 0.3, 0.5, 0.7),
        TimedPhoneme("m", 0.6, 0.8, 0.9),
        TimedPhoneme("o", 0.8, 1.2, 0.6),
        TimedPhoneme("b", 1.3, 1.5, 0.9),
        TimedPhoneme("ɛ", 1.5, 1.8, 0.9),
    ]


@pytest.fixture
def ipa_document() -> dict[str, Any]:
    """Current document shape with top-level words and IPA segments."""
    return {
        "text": "  Ciao, mondo!  ",
        "word_segments": [
            {"word": "Ciao,", "start": 0.0, "end": 0.5, "score": 0.95},
            {"word": "mondo!", "start": 0.6, "end": 1.2, "score": 0.9},
        ],
        "ipa_segments": [
            {
                "ipa_symbol": "tʃ",
                "start": 0.0,
                "end": 0.2,
                "orthographic": "ci",
                "linguistic_weight": 0.7,
                "confidence": 0.9,
                "description": "voiceless postalveolar affricate",
            },
            {"ipa_symbol": "a", "start": 0.2, "end": 0.5, "confidence": 0.6},
            {"ipa_symbol": "m", "start": 0.6, "end": 0.8},
            {"ipa_symbol": "o", "start": 0.8, "end": 1.2, "linguistic_weight": 0.5},
        ],
        "phoneme_segments": [
            {"phoneme": "x", "start": 0.0, "end": 0.5, "score": 0.1},
        ],
    }


@pytest.fixture
def legacy_document() -> dict[str, Any]:
    """Legacy document shape wrapped in ``result`` with aligned segments."""
    return {
        "result": {
            "asr_segments": [{"text": " ciao "}, {"text": ""}, {"text": "mondo"}],
            "aligned_segments": [
                {"words": [{"word": "mondo", "start": 0.6, "end": 1.2, "score": 0.8}]},
                {"words": [{"word": "ciao", "start": 0.0, "end": 0.5, "score": 0.9}]},
            ],
            "phoneme_segments": [
                {"phoneme": "k", "start": 0.0, "end": 0.2, "score": 0.9},
                {"phoneme": "a", "start": 0.2, "end": 0.5, "score": 0.8},
                {"phoneme": "m", "start": 0.6, "end": 0.9, "score": 0.7},
                {"phoneme": "O", "start": 0.9, "end": 1.2, "score": 0.6},
            ],
        }
    }


@pytest.fixture
def deterministic_config() -> AlignmentConfig:
    """Alignment config producing reproducible phoneme ids."""
    return AlignmentConfig(phoneme_id_strategy=PhonemeIdStrategy.DETERMINISTIC)


@pytest.fixture
def review_config() -> ReviewConfig:
    """Review config pointing at a fake endpoint with fast polling."""
    return ReviewConfig(
        service=ServiceConfig(api_endpoint="https://api.example.test/", poll_interval_seconds=0.01)
    )
