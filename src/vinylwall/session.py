"""WallSession — the explicit context object for one browsing session.

Holds the loaded collection, the current filter/sort and displayed view, and
the collaborators the pipeline runs through:

    CollectionClient -> CollectionCache -> project() -> {LazyRenderSurface, ExportCompositor}
                                                  \\-> compute_stats() -> StatsStore
"""

import logging
import random
from typing import Self

from vinylwall.cache.service import CollectionCache
from vinylwall.db.session import DatabaseManager
from vinylwall.discogs.client import CollectionClient
from vinylwall.discogs.exceptions import CollectionClientError
from vinylwall.discogs.models import CollectionItem
from vinylwall.export.compositor import ExportCompositor, ImageBlob
from vinylwall.export.surface import RenderDocument
from vinylwall.render.lazy import CoverLoader, LazyRenderSurface
from vinylwall.settings import WallSettings, get_settings
from vinylwall.stats.models import StatsSnapshot
from vinylwall.stats.service import StatsStore, compute_stats
from vinylwall.view.projection import DEFAULT_SORT_KEY, SortKey, parse_sort_key, project, shuffle

logger = logging.getLogger(__name__)

STATUS_LOADING = "Loading collection…"
STATUS_LOADED = "Collection loaded."
STATUS_FROM_CACHE = "Collection loaded from cache."
STATUS_CACHE_CLEARED = "Cache cleared."


class WallSession:
    """Single-visitor session state plus the components that act on it.

    Only one load per session should run at a time; ``loading`` is exposed so
    the caller can disable its load control while one is in flight.
    """

    def __init__(
        self,
        settings: WallSettings,
        db: DatabaseManager,
        *,
        client: CollectionClient | None = None,
        cache: CollectionCache | None = None,
        stats_store: StatsStore | None = None,
        surface: LazyRenderSurface | None = None,
        compositor: ExportCompositor | None = None,
        document: RenderDocument | None = None,
    ) -> None:
        self._settings = settings
        self._db = db
        self._client = client or CollectionClient(
            settings.DISCOGS_RELAY_URL,
            max_attempts=settings.FETCH_MAX_ATTEMPTS,
            retry_base_delay=settings.FETCH_RETRY_BASE_DELAY,
            request_timeout=settings.REQUEST_TIMEOUT,
        )
        self._cache = cache or CollectionCache(db, cache_ttl_hours=settings.CACHE_TTL_HOURS)
        self._stats_store = stats_store or StatsStore(db)
        self._cover_loader: CoverLoader | None = None
        if surface is None:
            self._cover_loader = CoverLoader(timeout=settings.REQUEST_TIMEOUT)
            surface = LazyRenderSurface(
                self._cover_loader,
                margin_px=settings.LAZY_MARGIN_PX,
                max_concurrent_loads=settings.LAZY_MAX_CONCURRENT_LOADS,
            )
        self._surface = surface
        self.document = document or RenderDocument()
        self._compositor = compositor or ExportCompositor(
            self.document,
            relay_url=settings.IMAGE_RELAY_URL,
            deadline_seconds=settings.EXPORT_DEADLINE_SECONDS,
            poll_interval=settings.EXPORT_POLL_INTERVAL,
            concurrency_limit=settings.EXPORT_CONCURRENCY,
        )

        self.owner_key = ""
        self.status_text = ""
        self.loading = False
        self._items: list[CollectionItem] = []
        self._view: list[CollectionItem] = []
        self._filter_text = ""
        self._sort_key: SortKey = DEFAULT_SORT_KEY
        self._shuffled = False
        self._stats: StatsSnapshot | None = None

    @classmethod
    def from_settings(cls, settings: WallSettings | None = None) -> Self:
        """Build a session from environment settings."""
        return cls(settings or get_settings(), DatabaseManager.from_env())

    async def open(self) -> None:
        """Prepare local storage."""
        await self._db.create_all()

    async def close(self) -> None:
        """Tear down the grid and release HTTP clients and the database engine."""
        self._surface.teardown()
        await self._client.close()
        await self._compositor.close()
        if self._cover_loader is not None:
            await self._cover_loader.close()
        await self._db.dispose()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[CollectionItem]:
        return list(self._items)

    @property
    def view(self) -> list[CollectionItem]:
        return list(self._view)

    @property
    def filter_text(self) -> str:
        return self._filter_text

    @property
    def sort_key(self) -> SortKey:
        return self._sort_key

    @property
    def shuffled(self) -> bool:
        return self._shuffled

    @property
    def stats(self) -> StatsSnapshot | None:
        return self._stats

    @property
    def surface(self) -> LazyRenderSurface:
        return self._surface

    @property
    def count_text(self) -> str:
        return f"{len(self._view)} records"

    def _set_status(self, text: str) -> None:
        self.status_text = text

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load_collection(self, owner_key: str, *, use_cache: bool = True) -> list[CollectionItem]:
        """Load ``owner_key``'s collection, from cache when fresh, else from the relay.

        Raises CollectionClientError subclasses; on failure the previous
        collection stays displayed and nothing is cached.
        """
        owner_key = owner_key.strip()
        if not owner_key:
            raise ValueError("owner key is required")

        self.loading = True
        self._set_status(STATUS_LOADING)
        try:
            items = await self._cache.read(owner_key) if use_cache else None
            if items is not None:
                status = STATUS_FROM_CACHE
            else:
                try:
                    items = await self._client.fetch_all_items(owner_key, on_progress=self._set_status)
                except CollectionClientError as exc:
                    self._set_status(str(exc))
                    logger.error("Collection load failed: %s", exc, extra={"owner_key": owner_key})
                    raise
                await self._cache.write(owner_key, items)
                status = STATUS_LOADED
        finally:
            self.loading = False

        self.owner_key = owner_key
        self._items = items
        self._shuffled = False
        await self._refresh_view()
        self._set_status(status)
        logger.info("Loaded %d items", len(items), extra={"owner_key": owner_key})
        return self.view

    async def apply_view(
        self,
        filter_text: str | None = None,
        sort_key: str | SortKey | None = None,
    ) -> list[CollectionItem]:
        """Re-project the loaded items. Clears any shuffle."""
        if filter_text is not None:
            self._filter_text = filter_text
        if sort_key is not None:
            self._sort_key = parse_sort_key(sort_key)
        self._shuffled = False
        await self._refresh_view()
        return self.view

    async def shuffle_view(self, rng: random.Random | None = None) -> list[CollectionItem]:
        """Randomly reorder the current view; lasts until the next filter/sort action."""
        self._shuffled = True
        await self._show(shuffle(self._view, rng))
        return self.view

    async def clear_cache(self, *, include_stats: bool = False) -> None:
        """Drop cached collections (and optionally the stats snapshot)."""
        await self._cache.clear_all()
        if include_stats:
            await self._stats_store.clear()
        self._set_status(STATUS_CACHE_CLEARED)

    async def restore_last_stats(self) -> tuple[str, StatsSnapshot] | None:
        """Return the snapshot persisted by a previous session, if any."""
        return await self._stats_store.load()

    async def export_composite(
        self,
        target_width_px: int | None = None,
        jpeg_quality: int | None = None,
    ) -> ImageBlob:
        """Export the current view. Raises ExportError."""
        return await self._compositor.export_composite(
            self._view,
            target_width_px=target_width_px or self._settings.EXPORT_TARGET_WIDTH,
            jpeg_quality=jpeg_quality,
        )

    async def _refresh_view(self) -> None:
        await self._show(project(self._items, self._filter_text, self._sort_key))

    async def _show(self, view: list[CollectionItem]) -> None:
        self._view = view
        self._surface.bind(view)
        self._stats = compute_stats(view, owner_key=self.owner_key)
        if self.owner_key:
            await self._stats_store.persist(self.owner_key, self._stats)
