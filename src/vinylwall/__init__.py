"""Vinyl wall: load a Discogs collection, browse it as a grid, export a composite."""

__version__ = "0.1.0"
