"""Local collection cache."""

from vinylwall.cache.service import CollectionCache

__all__ = ["CollectionCache"]
