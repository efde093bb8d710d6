"""Local storage models: CollectionCacheEntry and StatsSnapshotRecord.

The two tables are independent stores. Clearing the collection cache never
touches the stats snapshot.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vinylwall.db.base import Base, utc_now


class CollectionCacheEntry(Base):
    """Normalized items of one owner's collection, stored as a JSON array.

    Written once per successful full load; expires by TTL on read.
    """

    __tablename__ = "collection_cache"

    owner_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    items_json: Mapped[str] = mapped_column(Text, nullable=False)
    captured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)


class StatsSnapshotRecord(Base):
    """The most recent statistics snapshot. Singleton row (id = 1)."""

    __tablename__ = "stats_snapshot"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_key: Mapped[str] = mapped_column(String(255), nullable=False)
    snapshot_json: Mapped[str] = mapped_column(Text, nullable=False)
    captured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
