"""Local database package -- convenience re-exports.

Importing this module registers all models with Base.metadata.
"""

from vinylwall.db.base import Base
from vinylwall.db.models import CollectionCacheEntry, StatsSnapshotRecord
from vinylwall.db.session import DatabaseManager

__all__ = [
    "Base",
    "CollectionCacheEntry",
    "DatabaseManager",
    "StatsSnapshotRecord",
]
