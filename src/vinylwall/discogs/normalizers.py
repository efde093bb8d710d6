"""Normalize raw Discogs collection records into CollectionItem.

Records come from the relay exactly as Discogs sends them and vary a lot:
nested ``basic_information`` may be missing, years may be strings or ``0``,
format quantities are strings. Normalization never raises; missing pieces
degrade to placeholders and empty strings.
"""

import logging
import uuid

from vinylwall.discogs.constants import DISCOGS_WEB_BASE, RELEASE_URL_TEMPLATE, UNKNOWN_TITLE
from vinylwall.discogs.models import CollectionItem

logger = logging.getLogger(__name__)


def _as_dict(value: object) -> dict[str, object]:
    return value if isinstance(value, dict) else {}


def _as_list(value: object) -> list[object]:
    return value if isinstance(value, list) else []


def _clean_str(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return ""


def _to_int(value: object) -> int | None:
    """Parse ints from ints or numeric strings; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _is_absolute_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def _artist_display(info: dict[str, object]) -> str:
    names = [_clean_str(_as_dict(artist).get("name")) for artist in _as_list(info.get("artists"))]
    return ", ".join(name for name in names if name)


def _format_summary(info: dict[str, object]) -> str:
    """Render formats as e.g. ``"2× Vinyl (LP, Album) + CD"``."""
    parts: list[str] = []
    for raw_format in _as_list(info.get("formats")):
        fmt = _as_dict(raw_format)
        name = _clean_str(fmt.get("name"))
        if not name:
            continue
        qty = _to_int(fmt.get("qty")) or 1
        label = f"{qty}× {name}" if qty > 1 else name
        descriptions = [_clean_str(d) for d in _as_list(fmt.get("descriptions"))]
        descriptions = [d for d in descriptions if d]
        if descriptions:
            label += f" ({', '.join(descriptions)})"
        parts.append(label)
    return " + ".join(parts)


def _cover_url(info: dict[str, object]) -> str:
    for key in ("cover_image", "thumb"):
        url = _clean_str(info.get(key))
        if url and _is_absolute_url(url):
            return url
    return ""


def _external_url(raw: dict[str, object], info: dict[str, object], release_id: int | None) -> str:
    """Deep link to the release page: relative ``uri`` first, then the id template."""
    uri = _clean_str(raw.get("uri")) or _clean_str(info.get("uri"))
    if uri:
        if _is_absolute_url(uri):
            return uri
        if uri.startswith("/"):
            return f"{DISCOGS_WEB_BASE}{uri}"
    if release_id is not None and release_id > 0:
        return RELEASE_URL_TEMPLATE.format(release_id=release_id)
    return ""


def _year(info: dict[str, object]) -> int | None:
    year = _to_int(info.get("year"))
    if year is None or year < 0:
        return None
    return year


def normalize_release(raw: dict[str, object]) -> CollectionItem:
    """Normalize one raw collection record.

    The item id prefers the collection ``instance_id`` (distinct for every
    owned copy), then the release id, then a generated token.
    """
    info = _as_dict(raw.get("basic_information"))

    release_id = _to_int(raw.get("id"))
    if release_id is None:
        release_id = _to_int(info.get("id"))

    item_id = _clean_str(raw.get("instance_id")) or (str(release_id) if release_id is not None else "")
    if not item_id:
        item_id = uuid.uuid4().hex
        logger.debug("Record without id, generated %s", item_id)

    date_added = _clean_str(raw.get("date_added")) or None

    return CollectionItem(
        id=item_id,
        title=_clean_str(info.get("title")) or UNKNOWN_TITLE,
        artist_display=_artist_display(info),
        year=_year(info),
        cover_url=_cover_url(info),
        format_summary=_format_summary(info),
        external_url=_external_url(raw, info, release_id),
        date_added=date_added,
    )


def dedupe_ids(items: list[CollectionItem]) -> list[CollectionItem]:
    """Return items with repeated ids made unique by a ``-<n>`` suffix."""
    seen: dict[str, int] = {}
    result: list[CollectionItem] = []
    for item in items:
        count = seen.get(item.id, 0)
        seen[item.id] = count + 1
        if count:
            new_id = f"{item.id}-{count + 1}"
            while new_id in seen:
                count += 1
                new_id = f"{item.id}-{count + 1}"
            seen[new_id] = 1
            item = item.model_copy(update={"id": new_id})
        result.append(item)
    return result
