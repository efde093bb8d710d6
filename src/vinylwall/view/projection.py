"""View projection: filter, sort and shuffle over a loaded item set.

All functions are pure. They return new lists of references to the same
immutable items and never touch their input.
"""

import enum
import locale
import logging
import random
import unicodedata
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from vinylwall.discogs.models import CollectionItem

logger = logging.getLogger(__name__)


class SortKey(enum.StrEnum):
    """Sort orders offered by the grid."""

    ADDED_DESC = "added_desc"
    ARTIST_ASC = "artist_asc"
    TITLE_ASC = "title_asc"
    YEAR_DESC = "year_desc"
    YEAR_ASC = "year_asc"


DEFAULT_SORT_KEY = SortKey.ADDED_DESC


def parse_sort_key(value: str | SortKey | None) -> SortKey:
    """Coerce a sort key, falling back to the default for unknown values."""
    if value is None:
        return DEFAULT_SORT_KEY
    try:
        return SortKey(value)
    except ValueError:
        logger.debug("Unknown sort key %r, using %s", value, DEFAULT_SORT_KEY)
        return DEFAULT_SORT_KEY


def _parse_added(date_added: str | None) -> datetime | None:
    if not date_added:
        return None
    try:
        parsed = datetime.fromisoformat(date_added.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def added_timestamp(date_added: str | None) -> float:
    """Seconds since the epoch for an ISO-8601 string; 0.0 when absent or unparsable."""
    parsed = _parse_added(date_added)
    return parsed.timestamp() if parsed is not None else 0.0


def _added_desc(item: CollectionItem) -> tuple[object, ...]:
    # Undated items go after every dated one, including pre-epoch dates.
    parsed = _parse_added(item.date_added)
    if parsed is None:
        return (1, 0.0, item.id)
    return (0, -parsed.timestamp(), item.id)


def _collate(text: str) -> tuple[str, str]:
    """Accent-insensitive, case-insensitive collation key.

    Accents are folded away first so "Édith" files under E even in the C
    locale; the casefolded original breaks ties between folded equals.
    """
    folded = text.casefold()
    base = "".join(ch for ch in unicodedata.normalize("NFKD", folded) if not unicodedata.combining(ch))
    return locale.strxfrm(base), folded


def _year(item: CollectionItem) -> int:
    return item.year or 0


_SORT_KEYS: dict[SortKey, Callable[[CollectionItem], tuple[object, ...]]] = {
    SortKey.ADDED_DESC: _added_desc,
    SortKey.ARTIST_ASC: lambda item: (_collate(item.artist_display), item.id),
    SortKey.TITLE_ASC: lambda item: (_collate(item.title), item.id),
    SortKey.YEAR_DESC: lambda item: (-_year(item), item.id),
    SortKey.YEAR_ASC: lambda item: (_year(item), item.id),
}


def matches(item: CollectionItem, filter_text: str) -> bool:
    """Case-insensitive substring match on title or artist."""
    needle = filter_text.casefold()
    if not needle:
        return True
    return needle in item.title.casefold() or needle in item.artist_display.casefold()


def project(
    items: Sequence[CollectionItem],
    filter_text: str = "",
    sort_key: str | SortKey | None = DEFAULT_SORT_KEY,
) -> list[CollectionItem]:
    """Return the displayed subset of ``items``: filtered, then sorted.

    Ties are always broken by ``id`` so the result is deterministic.
    """
    key = parse_sort_key(sort_key)
    selected = [item for item in items if matches(item, filter_text)]
    return sorted(selected, key=_SORT_KEYS[key])  # type: ignore[arg-type]


def shuffle(items: Sequence[CollectionItem], rng: random.Random | None = None) -> list[CollectionItem]:
    """Return a uniformly random permutation of ``items`` (Fisher–Yates)."""
    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled
