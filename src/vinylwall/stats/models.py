"""Statistics snapshot models."""

from datetime import datetime

from pydantic import BaseModel, Field

from vinylwall.db.base import utc_now


class ArtistCount(BaseModel):
    """An artist and how many displayed items credit them."""

    name: str
    count: int


class StatsSnapshot(BaseModel):
    """Summary metrics over the displayed items. Derived, never hand-edited."""

    owner_key: str = ""
    total_shown: int = 0
    unique_artist_count: int = 0
    oldest_year: int | None = None
    newest_year: int | None = None
    top_artists: list[ArtistCount] = Field(default_factory=list)
    captured_at: datetime = Field(default_factory=utc_now)
