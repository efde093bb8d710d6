"""Storage configuration."""

from vinylwall.config.constants import DEFAULT_DATABASE_URL
from vinylwall.config.database import DatabaseSettings

__all__ = [
    "DEFAULT_DATABASE_URL",
    "DatabaseSettings",
]
