"""Runtime configuration for the captcha service."""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

DEFAULT_TESSERACT_LANG = "eng"
DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _positive(env, name: str, default, parse: Callable):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = parse(raw)
    except ValueError:
        raise RuntimeError(f"FATAL: {name} must be a number, got {raw!r}.") from None
    if value <= 0:
        raise RuntimeError(f"FATAL: {name} must be positive, got {raw!r}.")
    return value


def parse_log_level(value: Optional[str]) -> str:
    """Normalize a LOG_LEVEL value, raising RuntimeError for unknown names."""
    level = (value or DEFAULT_LOG_LEVEL).upper()
    # getLevelName maps known names to their numeric level.
    if not isinstance(logging.getLevelName(level), int):
        raise RuntimeError(f"FATAL: LOG_LEVEL {level!r} is not a logging level name.")
    return level


@dataclass
class Settings:
    """Service settings, normally read from the environment."""

    app_password: Optional[str] = None
    tessdata_dir: Optional[str] = None
    tesseract_lang: str = DEFAULT_TESSERACT_LANG
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """
        Build settings from environment variables.

        Recognized variables: APP_PASSWORD, TESSDATA_DIR, TESSERACT_LANG,
        FETCH_TIMEOUT, MAX_IMAGE_BYTES, LOG_LEVEL.

        Raises:
            RuntimeError: If a numeric variable or LOG_LEVEL is malformed.
        """
        env = os.environ if environ is None else environ
        return cls(
            app_password=env.get("APP_PASSWORD") or None,
            tessdata_dir=env.get("TESSDATA_DIR") or None,
            tesseract_lang=env.get("TESSERACT_LANG") or DEFAULT_TESSERACT_LANG,
            fetch_timeout=_positive(env, "FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT, float),
            max_image_bytes=_positive(env, "MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES, int),
            log_level=parse_log_level(env.get("LOG_LEVEL")),
        )
