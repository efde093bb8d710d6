"""Off-screen composition surface and the document it is attached to.

The surface only lives for the duration of one export. The compositor
attaches it to the session's RenderDocument, and always detaches and closes
it once the blob is produced or the export fails.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field

from PIL import Image

from vinylwall.export.constants import BACKGROUND_COLOR
from vinylwall.export.layout import ExportLayout

logger = logging.getLogger(__name__)


class TileState(enum.StrEnum):
    """Load state of a tile image."""

    PENDING = "pending"
    LOADED = "loaded"
    ERROR = "error"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = frozenset({TileState.LOADED, TileState.ERROR, TileState.TIMED_OUT})


@dataclass(slots=True)
class TileImage:
    """One cover placed on the surface, loaded through the image relay."""

    item_id: str
    src: str
    origin: tuple[int, int]
    cross_origin: str = "anonymous"
    state: TileState = TileState.PENDING
    image: Image.Image | None = None
    task: asyncio.Task[None] | None = None

    @property
    def settled(self) -> bool:
        return self.state in TERMINAL_STATES


@dataclass(slots=True, eq=False)
class CompositionSurface:
    """Canvas plus the tiles waiting to be drawn onto it."""

    layout: ExportLayout
    canvas: Image.Image
    tiles: list[TileImage] = field(default_factory=list)
    closed: bool = False

    @classmethod
    def create(cls, layout: ExportLayout) -> "CompositionSurface":
        canvas = Image.new("RGB", (layout.canvas_width_px, layout.canvas_height_px), BACKGROUND_COLOR)
        return cls(layout=layout, canvas=canvas)

    def all_settled(self) -> bool:
        return all(tile.settled for tile in self.tiles)

    def close(self) -> None:
        """Cancel outstanding loads and release every image buffer."""
        if self.closed:
            return
        for tile in self.tiles:
            if tile.task is not None and not tile.task.done():
                tile.task.cancel()
            if tile.image is not None:
                tile.image.close()
                tile.image = None
        self.canvas.close()
        self.closed = True


class RenderDocument:
    """Registry of surfaces currently attached to the page."""

    def __init__(self) -> None:
        self._surfaces: list[CompositionSurface] = []

    @property
    def surfaces(self) -> list[CompositionSurface]:
        return list(self._surfaces)

    def attach(self, surface: CompositionSurface) -> None:
        self._surfaces.append(surface)

    def detach(self, surface: CompositionSurface) -> None:
        if surface in self._surfaces:
            self._surfaces.remove(surface)
        else:
            logger.debug("Surface already detached")
