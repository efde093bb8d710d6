"""Export compositor: rasterize a collection into a single JPEG composite.

Every cover is fetched through the same-origin image relay. Pixels from a
cross-origin host could not be read back out of the canvas, so the live grid's
direct URLs are never used here.
"""

import asyncio
import functools
import io
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import httpx
from PIL import Image, UnidentifiedImageError

from vinylwall.discogs.constants import DEFAULT_IMAGE_RELAY_URL
from vinylwall.discogs.models import CollectionItem
from vinylwall.export.constants import (
    DEFAULT_EXPORT_CONCURRENCY,
    DEFAULT_IMAGE_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_READY_DEADLINE_SECONDS,
    DEFAULT_TARGET_WIDTH_PX,
    EXPORT_CONTENT_TYPE,
)
from vinylwall.export.exceptions import ExportError
from vinylwall.export.layout import calc_export_layout, jpeg_quality_for
from vinylwall.export.surface import CompositionSurface, RenderDocument, TileImage, TileState

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], Awaitable[bytes]]


@dataclass(frozen=True, slots=True)
class ImageBlob:
    """Encoded composite."""

    data: bytes
    width: int
    height: int
    quality: int
    content_type: str = EXPORT_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


def relay_image_url(cover_url: str, relay_url: str = DEFAULT_IMAGE_RELAY_URL) -> str:
    """Rewrite ``cover_url`` to go through the image relay (``<relay>?url=<encoded>``)."""
    return str(httpx.URL(relay_url, params={"url": cover_url}))


async def _fetch_bytes(client: httpx.AsyncClient, url: str) -> bytes:
    response = await client.get(url)
    response.raise_for_status()
    return response.content


def _square_tile(data: bytes, tile_size: int) -> Image.Image:
    """Decode, center-crop to a square, and resize to ``tile_size``."""
    with Image.open(io.BytesIO(data)) as img:
        img = img.convert("RGB")
    w, h = img.size
    side = min(w, h)
    left = (w - side) // 2
    top = (h - side) // 2
    img = img.crop((left, top, left + side, top + side))
    return img.resize((tile_size, tile_size), Image.LANCZOS)


class ExportCompositor:
    """Builds composites for a RenderDocument.

    The readiness gate waits for every tile to load or fail, polling every
    ``poll_interval`` seconds for at most ``deadline_seconds``. Tiles still
    pending at the deadline are given up on and left blank; the export goes
    ahead with whatever has loaded.
    """

    def __init__(
        self,
        document: RenderDocument,
        *,
        relay_url: str = DEFAULT_IMAGE_RELAY_URL,
        fetch: FetchFn | None = None,
        deadline_seconds: float = DEFAULT_READY_DEADLINE_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        concurrency_limit: int = DEFAULT_EXPORT_CONCURRENCY,
        image_timeout: float = DEFAULT_IMAGE_TIMEOUT,
    ) -> None:
        self._document = document
        self._relay_url = relay_url
        self._deadline = deadline_seconds
        self._poll_interval = poll_interval
        self._semaphore = asyncio.Semaphore(concurrency_limit)
        self._client: httpx.AsyncClient | None = None
        if fetch is None:
            self._client = httpx.AsyncClient(timeout=image_timeout, follow_redirects=True)
            fetch = functools.partial(_fetch_bytes, self._client)
        self._fetch = fetch

    async def close(self) -> None:
        """Close underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()

    async def _load_tile(self, tile: TileImage, tile_size: int) -> None:
        try:
            async with self._semaphore:
                data = await self._fetch(tile.src)
            tile.image = _square_tile(data, tile_size)
            tile.state = TileState.LOADED
        except (httpx.HTTPError, UnidentifiedImageError, OSError, ValueError) as exc:
            logger.debug("Tile %s failed to load: %s", tile.item_id, exc)
            tile.state = TileState.ERROR

    def _insert_tiles(self, surface: CompositionSurface, items: Sequence[CollectionItem]) -> None:
        tile_size = surface.layout.tile_size_px
        for index, item in enumerate(items):
            tile = TileImage(
                item_id=item.id,
                src=relay_image_url(item.cover_url, self._relay_url) if item.cover_url else "",
                origin=surface.layout.tile_origin(index),
            )
            surface.tiles.append(tile)
            if not tile.src:
                tile.state = TileState.ERROR
                continue
            tile.task = asyncio.create_task(self._load_tile(tile, tile_size))

    async def _wait_ready(self, surface: CompositionSurface) -> None:
        """Poll until every tile is settled or the deadline passes."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._deadline
        while not surface.all_settled():
            if loop.time() >= deadline:
                stalled = [tile for tile in surface.tiles if not tile.settled]
                logger.warning("Export deadline reached with %d tile(s) still loading; left blank", len(stalled))
                for tile in stalled:
                    if tile.task is not None:
                        tile.task.cancel()
                    tile.state = TileState.TIMED_OUT
                return
            await asyncio.sleep(self._poll_interval)

    def _rasterize(self, surface: CompositionSurface, quality: int) -> ImageBlob:
        canvas = surface.canvas
        for tile in surface.tiles:
            if tile.state is TileState.LOADED and tile.image is not None:
                canvas.paste(tile.image, tile.origin)
        buffer = io.BytesIO()
        try:
            canvas.save(buffer, "JPEG", quality=quality)
        except (OSError, ValueError) as exc:
            raise ExportError(f"rasterization failed: {exc}") from exc
        return ImageBlob(data=buffer.getvalue(), width=canvas.width, height=canvas.height, quality=quality)

    async def export_composite(
        self,
        items: Sequence[CollectionItem],
        target_width_px: int = DEFAULT_TARGET_WIDTH_PX,
        jpeg_quality: int | None = None,
    ) -> ImageBlob:
        """Render ``items`` into one JPEG. Raises ExportError on zero items or encoder failure."""
        if not items:
            raise ExportError("no items to export")

        layout = calc_export_layout(len(items), target_width_px)
        quality = jpeg_quality if jpeg_quality is not None else jpeg_quality_for(len(items))
        logger.info(
            "Exporting %d items as %dx%d grid (%dpx tiles, %dx%d canvas, quality %d)",
            len(items),
            layout.columns,
            layout.rows,
            layout.tile_size_px,
            layout.canvas_width_px,
            layout.canvas_height_px,
            quality,
        )

        try:
            surface = CompositionSurface.create(layout)
        except (MemoryError, ValueError) as exc:
            raise ExportError(f"could not allocate canvas: {exc}") from exc

        self._document.attach(surface)
        try:
            self._insert_tiles(surface, items)
            await self._wait_ready(surface)
            blob = self._rasterize(surface, quality)
        finally:
            self._document.detach(surface)
            surface.close()

        loaded = sum(1 for tile in surface.tiles if tile.state is TileState.LOADED)
        logger.info("Export complete: %d/%d tiles drawn, %d bytes", loaded, len(items), blob.size)
        return blob
