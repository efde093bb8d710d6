"""Statistics aggregation over collection items, plus the latest-snapshot store."""

import logging
import re
from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from vinylwall.db.base import utc_now
from vinylwall.db.models import StatsSnapshotRecord
from vinylwall.db.session import DatabaseManager
from vinylwall.discogs.models import CollectionItem
from vinylwall.stats.models import ArtistCount, StatsSnapshot

logger = logging.getLogger(__name__)

TOP_ARTIST_LIMIT = 8

_SNAPSHOT_ROW_ID = 1

# Discogs disambiguates same-named artists as "Name (2)". Stripping the
# suffix merges them on purpose, and can also merge unrelated artists.
_DISAMBIGUATION_SUFFIX = re.compile(r"\s\(\d+\)$")


def strip_disambiguation(name: str) -> str:
    """``"Boards of Canada (2)"`` -> ``"Boards of Canada"``."""
    return _DISAMBIGUATION_SUFFIX.sub("", name.strip())


def _credit_name(artist_display: str) -> str:
    """Strip the suffix from every name in a comma-joined credit."""
    names = [strip_disambiguation(part) for part in artist_display.split(", ")]
    return ", ".join(name for name in names if name)


def _positive_year(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    if isinstance(value, int) and value > 0:
        return value
    return None


def compute_stats(
    items: Iterable[CollectionItem],
    owner_key: str = "",
    now: datetime | None = None,
) -> StatsSnapshot:
    """Derive a StatsSnapshot from ``items``. Total: never raises."""
    artist_counts: Counter[str] = Counter()
    years: list[int] = []
    total = 0

    for item in items:
        total += 1
        credit = _credit_name(item.artist_display)
        if credit:
            artist_counts[credit] += 1
        year = _positive_year(item.year)
        if year is not None:
            years.append(year)

    # most_common keeps first-encountered order among equal counts
    top = [ArtistCount(name=name, count=count) for name, count in artist_counts.most_common(TOP_ARTIST_LIMIT)]

    return StatsSnapshot(
        owner_key=owner_key,
        total_shown=total,
        unique_artist_count=len(artist_counts),
        oldest_year=min(years) if years else None,
        newest_year=max(years) if years else None,
        top_artists=top,
        captured_at=now or utc_now(),
    )


class StatsStore:
    """Persists the most recent snapshot, independent of the collection cache."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def persist(self, owner_key: str, snapshot: StatsSnapshot) -> None:
        """Replace the stored snapshot. Failures are logged and ignored."""
        try:
            snapshot_json = snapshot.model_dump_json()
            async with self._db.session() as session:
                row = await session.get(StatsSnapshotRecord, _SNAPSHOT_ROW_ID)
                if row is not None:
                    row.owner_key = owner_key
                    row.snapshot_json = snapshot_json
                    row.captured_at = snapshot.captured_at
                else:
                    session.add(
                        StatsSnapshotRecord(
                            id=_SNAPSHOT_ROW_ID,
                            owner_key=owner_key,
                            snapshot_json=snapshot_json,
                            captured_at=snapshot.captured_at,
                        )
                    )
        except SQLAlchemyError:
            logger.warning("Stats snapshot write failed for %s", owner_key, exc_info=True)

    async def load(self) -> tuple[str, StatsSnapshot] | None:
        """Return ``(owner_key, snapshot)`` or None when absent or unreadable."""
        try:
            async with self._db.session() as session:
                row = await session.get(StatsSnapshotRecord, _SNAPSHOT_ROW_ID)
                if row is None:
                    return None
                owner_key = row.owner_key
                snapshot_json = row.snapshot_json
        except (SQLAlchemyError, ValueError):
            logger.warning("Stats snapshot read failed", exc_info=True)
            return None

        try:
            snapshot = StatsSnapshot.model_validate_json(snapshot_json)
        except ValidationError:
            logger.warning("Discarding malformed stats snapshot")
            return None
        return owner_key, snapshot

    async def clear(self) -> None:
        """Remove the stored snapshot."""
        try:
            async with self._db.session() as session:
                await session.execute(delete(StatsSnapshotRecord))
        except SQLAlchemyError:
            logger.warning("Stats snapshot clear failed", exc_info=True)

