"""Discogs collection client (through the catalog relay) and models."""

from vinylwall.discogs.client import CollectionClient
from vinylwall.discogs.exceptions import (
    CollectionClientError,
    ExhaustedRetriesError,
    ThrottledError,
    UpstreamError,
)
from vinylwall.discogs.models import CollectionItem
from vinylwall.discogs.normalizers import normalize_release

__all__ = [
    "CollectionClient",
    "CollectionClientError",
    "CollectionItem",
    "ExhaustedRetriesError",
    "ThrottledError",
    "UpstreamError",
    "normalize_release",
]
