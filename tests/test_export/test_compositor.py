"""Tests for ExportCompositor."""

import asyncio
import io
from unittest.mock import patch

import httpx
import pytest
import respx
from PIL import Image

from vinylwall.discogs.models import CollectionItem
from vinylwall.export.compositor import ExportCompositor
from vinylwall.export.exceptions import ExportError
from vinylwall.export.surface import RenderDocument, TileState

RELAY = "http://relay.test/.netlify/functions/img-proxy"


def _png(color: tuple[int, int, int], size: tuple[int, int] = (60, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, "PNG")
    return buffer.getvalue()


def _items(count: int) -> list[CollectionItem]:
    return [
        CollectionItem(id=str(i), title=f"Album {i}", cover_url=f"https://i.discogs.com/{i}.jpg")
        for i in range(count)
    ]


def _relay_handler(request: httpx.Request) -> httpx.Response:
    cover = request.url.params["url"]
    if cover.endswith("/0.jpg"):
        return httpx.Response(200, content=_png((255, 0, 0)))
    return httpx.Response(200, content=_png((0, 0, 255)))


async def test_zero_items_fails_without_creating_a_surface() -> None:
    document = RenderDocument()
    compositor = ExportCompositor(document, fetch=lambda url: asyncio.sleep(0, b""))

    with pytest.raises(ExportError):
        await compositor.export_composite([])

    assert document.surfaces == []


@respx.mock
async def test_export_produces_jpeg_through_relay() -> None:
    route = respx.get(url__startswith=RELAY).mock(side_effect=_relay_handler)
    document = RenderDocument()
    compositor = ExportCompositor(document, relay_url=RELAY)

    blob = await compositor.export_composite(_items(6), target_width_px=500)
    await compositor.close()

    assert route.call_count == 6
    assert blob.data.startswith(b"\xff\xd8")
    assert blob.content_type == "image/jpeg"
    assert blob.quality == 92
    assert (blob.width, blob.height) == (500, 200)
    assert document.surfaces == []

    with Image.open(io.BytesIO(blob.data)) as img:
        assert img.size == (500, 200)
        r, g, b = img.getpixel((50, 50))
        assert r > 200 and g < 60 and b < 60
        r, g, b = img.getpixel((150, 50))
        assert b > 200 and r < 60


async def test_explicit_quality_overrides_tier() -> None:
    async def fetch(url: str) -> bytes:
        return _png((0, 255, 0))

    compositor = ExportCompositor(RenderDocument(), fetch=fetch)

    blob = await compositor.export_composite(_items(2), target_width_px=100, jpeg_quality=40)

    assert blob.quality == 40


async def test_stalled_tile_is_left_blank_after_deadline() -> None:
    async def fetch(url: str) -> bytes:
        if url.endswith("1.jpg"):
            await asyncio.sleep(30)
        return _png((255, 0, 0))

    compositor = ExportCompositor(RenderDocument(), fetch=fetch, deadline_seconds=0.2, poll_interval=0.01)

    blob = await asyncio.wait_for(compositor.export_composite(_items(2), target_width_px=100), timeout=5)

    with Image.open(io.BytesIO(blob.data)) as img:
        r, _, _ = img.getpixel((10, 10))
        assert r > 200
        r, g, b = img.getpixel((30, 10))
        assert max(r, g, b) < 40


@respx.mock
async def test_refused_image_leaves_tile_blank() -> None:
    respx.get(url__startswith=RELAY).mock(return_value=httpx.Response(403))
    compositor = ExportCompositor(RenderDocument(), relay_url=RELAY)

    blob = await compositor.export_composite(_items(1), target_width_px=100)
    await compositor.close()

    with Image.open(io.BytesIO(blob.data)) as img:
        assert max(img.getpixel((5, 5))) < 40


async def test_undecodable_image_and_missing_cover_are_blank() -> None:
    async def fetch(url: str) -> bytes:
        return b"not an image"

    items = [
        CollectionItem(id="a", title="A", cover_url="https://i.discogs.com/a.jpg"),
        CollectionItem(id="b", title="B"),
    ]
    compositor = ExportCompositor(RenderDocument(), fetch=fetch)

    blob = await compositor.export_composite(items, target_width_px=100)

    assert blob.data.startswith(b"\xff\xd8")


async def test_encoder_failure_raises_and_detaches_surface() -> None:
    cover = _png((255, 0, 0))

    async def fetch(url: str) -> bytes:
        return cover

    document = RenderDocument()
    compositor = ExportCompositor(document, fetch=fetch)

    with patch.object(Image.Image, "save", side_effect=OSError("disk full")):
        with pytest.raises(ExportError, match="rasterization failed"):
            await compositor.export_composite(_items(3), target_width_px=100)

    assert document.surfaces == []


async def test_surface_is_attached_only_while_exporting() -> None:
    document = RenderDocument()
    seen: list[int] = []

    async def fetch(url: str) -> bytes:
        seen.append(len(document.surfaces))
        return _png((255, 0, 0))

    compositor = ExportCompositor(document, fetch=fetch)
    await compositor.export_composite(_items(3), target_width_px=100)

    assert seen == [1, 1, 1]
    assert document.surfaces == []


async def test_tiles_reach_terminal_states() -> None:
    document = RenderDocument()
    captured = []
    original_attach = document.attach

    def attach(surface):  # type: ignore[no-untyped-def]
        captured.append(surface)
        original_attach(surface)

    document.attach = attach  # type: ignore[method-assign]

    async def fetch(url: str) -> bytes:
        if url.endswith("2.jpg"):
            raise httpx.ConnectError("offline")
        return _png((255, 0, 0))

    compositor = ExportCompositor(document, fetch=fetch)
    await compositor.export_composite(_items(3), target_width_px=100)

    surface = captured[0]
    assert [tile.state for tile in surface.tiles] == [TileState.LOADED, TileState.LOADED, TileState.ERROR]
    assert all(tile.cross_origin == "anonymous" for tile in surface.tiles)
    assert surface.closed


async def test_injected_fetch_needs_no_http_client() -> None:
    async def fetch(url: str) -> bytes:
        return _png((255, 0, 0))

    compositor = ExportCompositor(RenderDocument(), fetch=fetch)
    await compositor.export_composite(_items(1), target_width_px=100)

    await compositor.close()
