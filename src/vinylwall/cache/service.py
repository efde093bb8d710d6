"""Collection cache service — TTL-bound local copy of each owner's collection."""

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from vinylwall.db.base import utc_now
from vinylwall.db.models import CollectionCacheEntry
from vinylwall.db.session import DatabaseManager
from vinylwall.discogs.models import CollectionItem

logger = logging.getLogger(__name__)

_ITEMS_ADAPTER = TypeAdapter(list[CollectionItem])

DEFAULT_CACHE_TTL_HOURS = 24


def _as_aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


class CollectionCache:
    """Caches fully loaded collections keyed by owner.

    Caching is best-effort: every storage or decoding failure is logged and
    treated as a cache miss (for reads) or a no-op (for writes and clears).
    """

    def __init__(
        self,
        db: DatabaseManager,
        *,
        cache_ttl_hours: int = DEFAULT_CACHE_TTL_HOURS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._db = db
        self._cache_ttl = timedelta(hours=cache_ttl_hours)
        self._clock = clock

    def _is_expired(self, captured_at: datetime) -> bool:
        return self._clock() - _as_aware(captured_at) > self._cache_ttl

    async def read(self, owner_key: str) -> list[CollectionItem] | None:
        """Return cached items for ``owner_key`` if present, well-formed and within TTL."""
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    select(CollectionCacheEntry).where(CollectionCacheEntry.owner_key == owner_key)
                )
                row = result.scalar_one_or_none()
                if row is None:
                    logger.debug("Cache miss for %s", owner_key)
                    return None
                captured_at = row.captured_at
                items_json = row.items_json
        except (SQLAlchemyError, ValueError):
            logger.warning("Cache read failed for %s", owner_key, exc_info=True)
            return None

        if self._is_expired(captured_at):
            logger.debug("Cache expired for %s", owner_key)
            return None

        try:
            items = _ITEMS_ADAPTER.validate_python(json.loads(items_json))
        except (ValueError, ValidationError):
            logger.warning("Discarding malformed cache entry for %s", owner_key)
            return None

        logger.debug("Cache hit for %s (%d items)", owner_key, len(items))
        return items

    async def write(self, owner_key: str, items: list[CollectionItem]) -> None:
        """Store ``items`` for ``owner_key``, replacing any prior entry."""
        try:
            items_json = json.dumps([item.model_dump() for item in items])
            async with self._db.session() as session:
                result = await session.execute(
                    select(CollectionCacheEntry).where(CollectionCacheEntry.owner_key == owner_key)
                )
                row = result.scalar_one_or_none()
                now = self._clock()
                if row is not None:
                    row.items_json = items_json
                    row.captured_at = now
                else:
                    session.add(CollectionCacheEntry(owner_key=owner_key, items_json=items_json, captured_at=now))
        except (SQLAlchemyError, TypeError, ValueError):
            logger.warning("Cache write failed for %s", owner_key, exc_info=True)
            return
        logger.debug("Cached %d items for %s", len(items), owner_key)

    async def clear_all(self) -> None:
        """Remove every collection cache entry. The stats snapshot is untouched."""
        try:
            async with self._db.session() as session:
                await session.execute(delete(CollectionCacheEntry))
        except SQLAlchemyError:
            logger.warning("Cache clear failed", exc_info=True)
            return
        logger.info("Collection cache cleared")
