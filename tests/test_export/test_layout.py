"""Tests for export layout and quality policy."""

import pytest

from vinylwall.export.compositor import relay_image_url
from vinylwall.export.layout import calc_export_layout, jpeg_quality_for


def test_small_collection_uses_minimum_columns() -> None:
    layout = calc_export_layout(3, 2048)

    assert layout.columns == 5
    assert layout.rows == 1
    assert layout.tile_size_px == 409
    assert (layout.canvas_width_px, layout.canvas_height_px) == (2045, 409)


def test_near_square_grid() -> None:
    layout = calc_export_layout(37, 2048)

    assert (layout.columns, layout.rows) == (7, 6)
    assert layout.tile_size_px == 292
    assert layout.canvas_width_px == 7 * 292
    assert layout.canvas_height_px == 6 * 292


def test_tiles_never_shrink_below_minimum() -> None:
    layout = calc_export_layout(10_000, 2048)

    assert layout.columns == 100
    assert layout.tile_size_px == 26
    assert layout.canvas_width_px == 2600


def test_tile_origin_is_row_major() -> None:
    layout = calc_export_layout(12, 1000)

    assert layout.tile_origin(0) == (0, 0)
    assert layout.tile_origin(4) == (4 * layout.tile_size_px, 0)
    assert layout.tile_origin(5) == (0, layout.tile_size_px)


@pytest.mark.parametrize(("count", "quality"), [(1, 92), (499, 92), (500, 85), (999, 85), (1000, 75), (5000, 75)])
def test_quality_tiers(count: int, quality: int) -> None:
    assert jpeg_quality_for(count) == quality


def test_relay_url_encodes_cover_url() -> None:
    url = relay_image_url("https://i.discogs.com/a b.jpg?x=1&y=2", "https://wall.example/img-proxy")

    assert url.startswith("https://wall.example/img-proxy?url=")
    assert "&y=" not in url
    assert "x%3D1%26y%3D2" in url
