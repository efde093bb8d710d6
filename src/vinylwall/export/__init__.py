"""Composite export of a collection into one raster image."""

from vinylwall.export.compositor import ExportCompositor, ImageBlob, relay_image_url
from vinylwall.export.exceptions import ExportError
from vinylwall.export.layout import ExportLayout, calc_export_layout, jpeg_quality_for
from vinylwall.export.surface import CompositionSurface, RenderDocument, TileImage, TileState

__all__ = [
    "CompositionSurface",
    "ExportCompositor",
    "ExportError",
    "ExportLayout",
    "ImageBlob",
    "RenderDocument",
    "TileImage",
    "TileState",
    "calc_export_layout",
    "jpeg_quality_for",
    "relay_image_url",
]
