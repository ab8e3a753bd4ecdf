#!/usr/bin/env python3
"""
Runtime settings for the lead search engine.

Env options:
- GOOGLE_MAPS_API_KEY: key for Geocoding + Places web services (required for live calls)
- MAPS_HTTP_TIMEOUT_SECONDS: per-request timeout
- MAPS_LANGUAGE: language passed to Google endpoints
- MAPS_PAGE_TOKEN_DELAY_SECONDS: wait before a next_page_token becomes usable
- MAPS_MAX_RESULTS_PER_QUERY: result ceiling of a single Places query (pages * 20)
- MAPS_DETAILS_LIMIT: how many results get a Place Details call
- MAPS_MAX_CONCURRENCY: concurrent sub-searches in a grid sweep (1 = sequential)
- MAPS_DEFAULT_RADIUS_METERS / MAPS_DEFAULT_GRID_SIZE: tool defaults
- MAPS_ALLOW_ANONYMOUS: development bypass for the authorization policy
- LOG_LEVEL
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    google_maps_api_key: str = ""
    http_timeout_seconds: float = 20.0
    language: str = "en"
    page_token_delay_seconds: float = 2.0
    max_results_per_query: int = 60
    details_limit: int = 10
    max_concurrency: int = 1
    default_radius_meters: float = 5000.0
    default_grid_size: int = 2
    allow_anonymous: bool = False
    log_level: str = "INFO"

    def require_api_key(self) -> str:
        if not self.google_maps_api_key:
            raise ConfigError("GOOGLE_MAPS_API_KEY must be set to call Google Maps services.")
        return self.google_maps_api_key


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment (and .env) once per process."""
    load_dotenv()

    api_key = os.getenv("GOOGLE_MAPS_API_KEY", "").strip()
    if not api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not configured; Google Maps requests will fail.")

    return Settings(
        google_maps_api_key=api_key,
        http_timeout_seconds=_env_float("MAPS_HTTP_TIMEOUT_SECONDS", 20.0),
        language=os.getenv("MAPS_LANGUAGE", "en").strip() or "en",
        page_token_delay_seconds=max(0.0, _env_float("MAPS_PAGE_TOKEN_DELAY_SECONDS", 2.0)),
        max_results_per_query=max(1, _env_int("MAPS_MAX_RESULTS_PER_QUERY", 60)),
        details_limit=max(0, _env_int("MAPS_DETAILS_LIMIT", 10)),
        max_concurrency=max(1, _env_int("MAPS_MAX_CONCURRENCY", 1)),
        default_radius_meters=_env_float("MAPS_DEFAULT_RADIUS_METERS", 5000.0),
        default_grid_size=max(1, _env_int("MAPS_DEFAULT_GRID_SIZE", 2)),
        allow_anonymous=_env_bool("MAPS_ALLOW_ANONYMOUS"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


def mask_api_key(api_key: str) -> str:
    """Show only the edges of a key so it can be logged."""
    if len(api_key) <= 10:
        return "***"
    return f"{api_key[:5]}...{api_key[-5:]}"
