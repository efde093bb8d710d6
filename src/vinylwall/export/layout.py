"""Grid layout and quality policy for exported composites."""

import math
from dataclasses import dataclass

from vinylwall.export.constants import (
    DEFAULT_TARGET_WIDTH_PX,
    LOW_QUALITY_FROM,
    MEDIUM_QUALITY_FROM,
    MIN_COLUMNS,
    MIN_TILE_SIZE_PX,
    QUALITY_HIGH,
    QUALITY_LOW,
    QUALITY_MEDIUM,
)


@dataclass(frozen=True, slots=True)
class ExportLayout:
    """Tile grid for a composite of ``columns * rows`` square tiles."""

    columns: int
    rows: int
    tile_size_px: int
    canvas_width_px: int
    canvas_height_px: int

    def tile_origin(self, index: int) -> tuple[int, int]:
        """Top-left pixel of tile ``index`` (row-major)."""
        row, col = divmod(index, self.columns)
        return col * self.tile_size_px, row * self.tile_size_px


def calc_export_layout(item_count: int, target_width_px: int = DEFAULT_TARGET_WIDTH_PX) -> ExportLayout:
    """Lay out ``item_count`` tiles in a near-square grid about ``target_width_px`` wide.

    Tiles never shrink below MIN_TILE_SIZE_PX, so very large collections come
    out wider than the target instead of degenerating into unreadable cells.
    """
    count = max(0, item_count)
    columns = max(MIN_COLUMNS, math.ceil(math.sqrt(count)))
    rows = math.ceil(count / columns)
    tile_size = max(MIN_TILE_SIZE_PX, target_width_px // columns)
    return ExportLayout(
        columns=columns,
        rows=rows,
        tile_size_px=tile_size,
        canvas_width_px=columns * tile_size,
        canvas_height_px=rows * tile_size,
    )


def jpeg_quality_for(item_count: int) -> int:
    """Pick a JPEG quality tier; bigger grids get lower quality to bound file size."""
    if item_count < MEDIUM_QUALITY_FROM:
        return QUALITY_HIGH
    if item_count < LOW_QUALITY_FROM:
        return QUALITY_MEDIUM
    return QUALITY_LOW
