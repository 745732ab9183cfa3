"""Configuration for the phoneme review pipeline.

Provides a typed configuration model with environment-backed defaults, an
optional YAML loader and an accessor that caches the environment
configuration for reuse.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from phoneme_review.constants import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_AUDIO_CONTENT_TYPE,
    DEFAULT_AUDIO_EXTENSION,
    DEFAULT_IPA_SCORE,
    DEFAULT_LANGUAGE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_REQUEST_TIMEOUT,
    ENRICHMENT_TOLERANCE,
    PHONEME_PLAYBACK_MARGIN,
    WORD_PHONEME_TOLERANCE,
    WORD_PLAYBACK_MARGIN,
)
from phoneme_review.exceptions import ConfigurationError
from phoneme_review.models import PhonemeIdStrategy

TRUTHY_VALUES = {"1", "true", "yes", "on"}


class AlignmentConfig(BaseModel):
    """Alignment tolerances and phoneme identity settings."""

    word_tolerance: float = WORD_PHONEME_TOLERANCE
    enrichment_tolerance: float = ENRICHMENT_TOLERANCE
    default_ipa_score: Annotated[float, Field(ge=0.0, le=1.0)] = DEFAULT_IPA_SCORE
    phoneme_id_strategy: PhonemeIdStrategy = PhonemeIdStrategy.RANDOM

    @field_validator("word_tolerance", "enrichment_tolerance")
    @classmethod
    def validate_tolerance(cls, v: float) -> float:
        """Validate tolerances are positive and below one second."""
        if v <= 0 or v >= 1.0:
            raise ValueError("tolerances must be in (0, 1) seconds")
        return v


class ServiceConfig(BaseModel):
    """Transcription and upload service configuration."""

    api_endpoint: str = DEFAULT_API_ENDPOINT
    language: str = DEFAULT_LANGUAGE
    poll_interval_seconds: Annotated[float, Field(gt=0, le=300)] = DEFAULT_POLL_INTERVAL_SECONDS
    request_timeout: Annotated[float, Field(gt=0, le=600)] = DEFAULT_REQUEST_TIMEOUT
    default_extension: str = DEFAULT_AUDIO_EXTENSION
    default_content_type: str = DEFAULT_AUDIO_CONTENT_TYPE

    @field_validator("api_endpoint")
    @classmethod
    def normalize_endpoint(cls, v: str) -> str:
        """Strip whitespace and trailing slashes from the endpoint."""
        return v.strip().rstrip("/")


class PlaybackConfig(BaseModel):
    """Margins applied around word and phoneme playback windows."""

    word_margin: Annotated[float, Field(ge=0, le=1.0)] = WORD_PLAYBACK_MARGIN
    phoneme_margin: Annotated[float, Field(ge=0, le=1.0)] = PHONEME_PLAYBACK_MARGIN


class ReviewConfig(BaseModel):
    """Complete phoneme review configuration."""

    alignment: AlignmentConfig = Field(default_factory=AlignmentConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    log_level: str = DEFAULT_LOG_LEVEL
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> ReviewConfig:
        return apply_env_overrides(config=cls())


def apply_env_overrides(*, config: ReviewConfig) -> ReviewConfig:
    """Override configuration fields with environment variables when present.

    Args:
        config: Configuration to update in place.

    Returns:
        The updated configuration.
    """

    def _float(name: str, default: float) -> float:
        try:
            return float(os.getenv(name, str(default)))
        except (ValueError, TypeError):
            logger.warning(f"Ignoring non-numeric {name}={os.getenv(name)!r}")
            return default

    if os.getenv("REVIEW_API_ENDPOINT"):
        config.service.api_endpoint = os.getenv("REVIEW_API_ENDPOINT", "").strip().rstrip("/")
    if os.getenv("REVIEW_LANGUAGE"):
        config.service.language = os.getenv("REVIEW_LANGUAGE", DEFAULT_LANGUAGE).strip()
    if os.getenv("REVIEW_POLL_INTERVAL"):
        interval = _float("REVIEW_POLL_INTERVAL", config.service.poll_interval_seconds)
        if interval > 0:
            config.service.poll_interval_seconds = interval
    if os.getenv("REVIEW_PHONEME_IDS"):
        try:
            config.alignment.phoneme_id_strategy = PhonemeIdStrategy(
                os.getenv("REVIEW_PHONEME_IDS", "").lower()
            )
        except ValueError:
            logger.warning(f"Unknown REVIEW_PHONEME_IDS={os.getenv('REVIEW_PHONEME_IDS')!r}")
    if os.getenv("LOG_LEVEL"):
        config.log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    if os.getenv("LOG_JSON"):
        config.json_logs = os.getenv("LOG_JSON", "false").lower() in TRUTHY_VALUES

    return config


def load_config(*, config_path: str | None = None) -> ReviewConfig:
    """Load configuration from an optional YAML file and the environment.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Configuration object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If the file cannot be parsed or validated.
    """
    if config_path is None:
        config = ReviewConfig()
    else:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with config_file.open("r") as file:
                raw_config: dict[str, Any] = yaml.safe_load(file) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(msg=f"Failed to parse YAML config: {e}") from e

        if not isinstance(raw_config, dict):
            raise ConfigurationError(msg=f"Config file {config_path} must contain a mapping")

        try:
            config = ReviewConfig(**raw_config)
        except ValidationError as e:
            raise ConfigurationError(msg=f"Invalid configuration: {e}") from e

        logger.info(f"Config loaded from {config_path}")

    return apply_env_overrides(config=config)


@lru_cache(maxsize=1)
def get_review_config() -> ReviewConfig:
    """Load and cache the review configuration from environment."""
    return ReviewConfig.from_env()
