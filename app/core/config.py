# path: tcat-route-api/app/core/config.py

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://transit-backend.cornellappdev.com/api/v1"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, passed explicitly to whatever needs it."""

    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = 10.0
    max_retries: int = 3
    retry_delay: float = 1.0
    log_level: str = "INFO"


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Environment variable '{name}' is not a number: {value!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Environment variable '{name}' is not an integer: {value!r}, using {default}")
        return default


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)
    return Settings(
        api_base_url=os.getenv("TCAT_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        request_timeout=_env_float("TCAT_REQUEST_TIMEOUT", 10.0),
        max_retries=_env_int("TCAT_MAX_RETRIES", 3),
        retry_delay=_env_float("TCAT_RETRY_DELAY", 1.0),
        log_level=os.getenv("TCAT_LOG_LEVEL", "INFO").upper(),
    )
