"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_LANGUAGES = {"vi", "en"}


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    gemini_model: str = "gemini-2.5-flash"
    request_timeout: int = 60
    language: str = "vi"
    grid_size: int = 8
    port: int = 8080


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %d.", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive; using %d.", name, default)
        return default
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    gemini_api_key = os.getenv("GEMINI_API_KEY", "")
    gemini_model = os.getenv("GEMINI_MODEL") or "gemini-2.5-flash"
    language = (os.getenv("SEARCH_LANGUAGE") or "vi").strip().lower()
    if language not in _LANGUAGES:
        logger.warning("SEARCH_LANGUAGE=%s is not supported; falling back to vi.", language)
        language = "vi"

    if not gemini_api_key:
        logger.warning("GEMINI_API_KEY is not configured; live searches will fail.")

    return Settings(
        gemini_api_key=gemini_api_key,
        gemini_model=gemini_model,
        request_timeout=_int_env("GEMINI_TIMEOUT", 60),
        language=language,
        grid_size=_int_env("DENSITY_GRID_SIZE", 8),
        port=_int_env("PORT", 8080),
    )


def require_api_key(settings: Settings) -> str:
    if not settings.gemini_api_key:
        raise ConfigError("GEMINI_API_KEY must be set in the environment to run a search.")
    return settings.gemini_api_key
