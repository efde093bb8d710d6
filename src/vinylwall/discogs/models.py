"""Pydantic models for relay responses and the normalized collection item.

The relay forwards Discogs' ``/users/{username}/collection/folders/0/releases``
payload unchanged. Only the envelope is validated strictly; individual release
records are kept as plain dicts and normalized by
:func:`vinylwall.discogs.normalizers.normalize_release`, which tolerates
missing or oddly typed fields.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Relay envelope
# ---------------------------------------------------------------------------


class Pagination(BaseModel):
    """Paging block of a collection page."""

    page: int | None = None
    pages: int = 1
    per_page: int | None = None
    items: int | None = None


class CollectionPage(BaseModel):
    """One page of collection releases as returned by the catalog relay."""

    releases: list[dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class RelayErrorBody(BaseModel):
    """Error body the relay sends with non-2xx responses."""

    error: str = ""
    details: str | None = None


# ---------------------------------------------------------------------------
# Normalized item
# ---------------------------------------------------------------------------


class CollectionItem(BaseModel):
    """A single release in a collection, normalized for display.

    Immutable: projections reorder or subset references, they never edit items.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    artist_display: str = ""
    year: int | None = None
    cover_url: str = ""
    format_summary: str = ""
    external_url: str = ""
    date_added: str | None = None
