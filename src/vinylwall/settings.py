"""Vinyl wall settings loaded from environment variables."""

import functools

from pydantic_settings import BaseSettings

from vinylwall.discogs.constants import (
    DEFAULT_CATALOG_RELAY_URL,
    DEFAULT_IMAGE_RELAY_URL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BASE_DELAY,
)
from vinylwall.export.constants import (
    DEFAULT_EXPORT_CONCURRENCY,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_READY_DEADLINE_SECONDS,
    DEFAULT_TARGET_WIDTH_PX,
)
from vinylwall.render.constants import DEFAULT_MAX_CONCURRENT_LOADS, DEFAULT_PROXIMITY_MARGIN_PX


class WallSettings(BaseSettings):
    """Vinyl wall configuration."""

    # Relays
    DISCOGS_RELAY_URL: str = DEFAULT_CATALOG_RELAY_URL
    IMAGE_RELAY_URL: str = DEFAULT_IMAGE_RELAY_URL
    REQUEST_TIMEOUT: float = DEFAULT_REQUEST_TIMEOUT

    # Collection fetch
    FETCH_MAX_ATTEMPTS: int = DEFAULT_MAX_ATTEMPTS
    FETCH_RETRY_BASE_DELAY: float = DEFAULT_RETRY_BASE_DELAY

    # Cache
    CACHE_TTL_HOURS: int = 24

    # Lazy grid
    LAZY_MARGIN_PX: int = DEFAULT_PROXIMITY_MARGIN_PX
    LAZY_MAX_CONCURRENT_LOADS: int = DEFAULT_MAX_CONCURRENT_LOADS

    # Export
    EXPORT_TARGET_WIDTH: int = DEFAULT_TARGET_WIDTH_PX
    EXPORT_DEADLINE_SECONDS: float = DEFAULT_READY_DEADLINE_SECONDS
    EXPORT_POLL_INTERVAL: float = DEFAULT_POLL_INTERVAL
    EXPORT_CONCURRENCY: int = DEFAULT_EXPORT_CONCURRENCY

    # Entry point
    OWNER_KEY: str = ""
    EXPORT_PATH: str = ""  # Empty = skip export

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = {"env_prefix": ""}


@functools.lru_cache(maxsize=1)
def get_settings() -> WallSettings:
    """Return cached settings singleton."""
    return WallSettings()
