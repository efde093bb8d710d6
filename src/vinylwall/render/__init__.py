"""Lazy image loading for the live grid."""

from vinylwall.render.lazy import CoverLoader, IntentState, LazyRenderSurface, LoadIntent, Viewport, tilt_for

__all__ = [
    "CoverLoader",
    "IntentState",
    "LazyRenderSurface",
    "LoadIntent",
    "Viewport",
    "tilt_for",
]
