import os
import random
import sys
from typing import Final

from loguru import logger

from phoneme_review.constants import DEFAULT_LOG_LEVEL

TRUTHY_VALUES: Final[set[str]] = {"1", "true", "yes", "on"}

_PLAIN_FORMAT: Final[str] = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_SERVICE_FORMAT: Final[str] = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<blue>{extra[service]}</blue> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(
    *, service: str | None = None, level: str | None = None, json_logs: bool | None = None
) -> None:
    """Configure Loguru logger based on environment variables.

    Explicit arguments take precedence over ``LOG_LEVEL`` and ``LOG_JSON``.

    Args:
        service: Optional service name to include in log context.
        level: Minimum level to emit.
        json_logs: Serialize records as JSON.
    """
    logger.remove()

    level_env: str = level or os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    if json_logs is None:
        json_logs = os.getenv("LOG_JSON", "false").lower() in TRUTHY_VALUES

    sampling_rate = get_sampling_rate("LOG_SAMPLING_RATE", 1.0)

    def _sample(_record: object) -> bool:
        return sampling_rate >= 1.0 or random.random() < sampling_rate

    if json_logs:
        logger.add(sys.stdout, level=level_env, serialize=True, filter=_sample)
    else:
        fmt = _SERVICE_FORMAT if service else _PLAIN_FORMAT
        logger.add(sys.stdout, level=level_env, format=fmt, colorize=True, filter=_sample)

    if service:
        logger.configure(extra={"service": service})


def get_sampling_rate(env_name: str, default: float) -> float:
    """Read a sampling rate in [0, 1] from the environment, ``default`` when invalid."""
    try:
        value = float(os.getenv(env_name, str(default)))
    except ValueError:
        return default
    if not (0.0 <= value <= 1.0):
        return default
    return value
