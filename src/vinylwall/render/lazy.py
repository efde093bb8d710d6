"""Lazy render surface: deferred cover loading for the live grid.

Each displayed item gets a load intent tied to its placeholder position.
An intent fires once, when its placeholder comes within ``margin_px`` of the
viewport, and is never observed again. Rebinding the surface to a new item
list tears down every previous intent, cancelling loads still in flight so
nothing lands in a view that no longer exists.

Live loading fetches ``cover_url`` directly. The image relay is reserved for
export, where cross-origin pixels must be readable.
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import httpx

from vinylwall.discogs.models import CollectionItem
from vinylwall.render.constants import (
    DEFAULT_COLUMNS,
    DEFAULT_COVER_TIMEOUT,
    DEFAULT_GAP_PX,
    DEFAULT_MAX_CONCURRENT_LOADS,
    DEFAULT_PROXIMITY_MARGIN_PX,
    DEFAULT_TILE_SIZE_PX,
    MAX_TILT_DEGREES,
)

logger = logging.getLogger(__name__)

LoaderFn = Callable[[str], Awaitable[bytes]]

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193
_TILT_STEPS = 600


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 bytes of ``text``."""
    h = _FNV_OFFSET
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h


def tilt_for(item_id: str) -> float:
    """Deterministic collage rotation in degrees, within ``[-MAX_TILT, MAX_TILT]``."""
    step = fnv1a_32(item_id) % (_TILT_STEPS + 1)
    return round(step / _TILT_STEPS * 2 * MAX_TILT_DEGREES - MAX_TILT_DEGREES, 2)


@dataclass(frozen=True, slots=True)
class Viewport:
    """Visible vertical window of the grid, in pixels."""

    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


class IntentState(enum.StrEnum):
    """Lifecycle of a load intent."""

    WAITING = "waiting"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class LoadIntent:
    """A placeholder waiting to have its cover loaded."""

    item: CollectionItem
    index: int
    top: float
    bottom: float
    tilt: float
    state: IntentState = IntentState.WAITING
    data: bytes | None = None
    task: asyncio.Task[None] | None = None


class CoverLoader:
    """Fetches cover bytes straight from the image host."""

    def __init__(self, timeout: float = DEFAULT_COVER_TIMEOUT) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def __call__(self, url: str) -> bytes:
        response = await self._client.get(url)
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        """Close underlying HTTP client."""
        await self._client.aclose()


class LazyRenderSurface:
    """Tracks load intents for the currently displayed items."""

    def __init__(
        self,
        loader: LoaderFn,
        *,
        columns: int = DEFAULT_COLUMNS,
        tile_size_px: int = DEFAULT_TILE_SIZE_PX,
        gap_px: int = DEFAULT_GAP_PX,
        margin_px: int = DEFAULT_PROXIMITY_MARGIN_PX,
        max_concurrent_loads: int = DEFAULT_MAX_CONCURRENT_LOADS,
    ) -> None:
        self._loader = loader
        self._columns = max(1, columns)
        self._tile_size = tile_size_px
        self._gap = gap_px
        self._margin = margin_px
        self._semaphore = asyncio.Semaphore(max_concurrent_loads)
        self._intents: list[LoadIntent] = []
        self._generation = 0

    @property
    def intents(self) -> list[LoadIntent]:
        return list(self._intents)

    @property
    def generation(self) -> int:
        return self._generation

    def _placeholder_top(self, index: int) -> float:
        row = index // self._columns
        return float(row * (self._tile_size + self._gap))

    def bind(self, items: Sequence[CollectionItem]) -> None:
        """Replace all intents with one per item in ``items``."""
        self.teardown()
        for index, item in enumerate(items):
            top = self._placeholder_top(index)
            self._intents.append(
                LoadIntent(
                    item=item,
                    index=index,
                    top=top,
                    bottom=top + self._tile_size,
                    tilt=tilt_for(item.id),
                )
            )
        logger.debug("Bound %d intents (generation %d)", len(self._intents), self._generation)

    def teardown(self) -> None:
        """Drop every intent; loads still in flight are cancelled."""
        self._generation += 1
        for intent in self._intents:
            if intent.task is not None and not intent.task.done():
                intent.task.cancel()
            if intent.state in (IntentState.WAITING, IntentState.LOADING):
                intent.state = IntentState.CANCELLED
        self._intents = []

    def _near(self, intent: LoadIntent, viewport: Viewport) -> bool:
        return intent.bottom >= viewport.top - self._margin and intent.top <= viewport.bottom + self._margin

    def update_viewport(self, viewport: Viewport) -> list[str]:
        """Trigger waiting intents near ``viewport``. Returns the triggered item ids.

        Must be called from a running event loop.
        """
        triggered: list[str] = []
        for intent in self._intents:
            if intent.state is not IntentState.WAITING or not self._near(intent, viewport):
                continue
            triggered.append(intent.item.id)
            if not intent.item.cover_url:
                intent.state = IntentState.FAILED
                continue
            intent.state = IntentState.LOADING
            intent.task = asyncio.create_task(self._load(intent, self._generation))
        return triggered

    async def _load(self, intent: LoadIntent, generation: int) -> None:
        async with self._semaphore:
            if generation != self._generation:
                return
            try:
                data = await self._loader(intent.item.cover_url)
            except httpx.HTTPError as exc:
                logger.debug("Cover load failed for %s: %s", intent.item.id, exc)
                intent.state = IntentState.FAILED
                return
            except Exception:
                logger.exception("Unexpected error loading cover for %s", intent.item.id)
                intent.state = IntentState.FAILED
                return
        if generation == self._generation:
            intent.data = data
            intent.state = IntentState.LOADED

    async def wait_idle(self) -> None:
        """Wait for every load triggered in the current generation to finish."""
        tasks = [intent.task for intent in self._intents if intent.task is not None and not intent.task.done()]
        if tasks:
            await asyncio.gather(*tasks)
