"""Constants for the phoneme review pipeline.

This module provides centralized access to configuration values through
environment variable loading and constant definitions. It loads the .env
file once at module import and exposes all configuration as typed constants.
"""

import os
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

_PROJECT_ROOT: Final[Path] = Path(__file__).parent.parent.parent
_ENV_FILE: Final[Path] = _PROJECT_ROOT / ".env"

load_dotenv(_ENV_FILE)

DEFAULT_API_ENDPOINT: Final[str] = os.getenv("REVIEW_API_ENDPOINT", "")
DEFAULT_LANGUAGE: Final[str] = "it"

# Alignment
PUNCTUATION_CHARS: Final[str] = ".,!?;:"
WORD_PHONEME_TOLERANCE: Final[float] = 0.1
ENRICHMENT_TOLERANCE: Final[float] = 0.01
DEFAULT_IPA_SCORE: Final[float] = 0.8
UNALIGNED_TIME: Final[float] = -1.0

# Transcription service
DEFAULT_POLL_INTERVAL_SECONDS: Final[float] = 3.0
DEFAULT_REQUEST_TIMEOUT: Final[float] = 30.0
DEFAULT_AUDIO_EXTENSION: Final[str] = "mp3"
DEFAULT_AUDIO_CONTENT_TYPE: Final[str] = "audio/mpeg"
UPLOAD_KEY_PREFIX: Final[str] = "uploads/"
AUDIO_EXTENSIONS: Final[frozenset[str]] = frozenset({"mp3", "wav", "ogg", "m4a", "aac", "flac"})
DOCUMENT_CONTENT_TYPE: Final[str] = "application/json"
DOCUMENT_EXTENSION: Final[str] = ".json"

# Playback
WORD_PLAYBACK_MARGIN: Final[float] = 0.05
PHONEME_PLAYBACK_MARGIN: Final[float] = 0.1

# Export
EXPORT_FILENAME_TEMPLATE: Final[str] = "phoneme-evaluations-{timestamp_ms}.json"

DEFAULT_LOG_LEVEL: Final[str] = "INFO"
