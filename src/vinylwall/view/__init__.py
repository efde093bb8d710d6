"""Filtering, sorting and shuffling of the displayed collection."""

from vinylwall.view.projection import DEFAULT_SORT_KEY, SortKey, parse_sort_key, project, shuffle

__all__ = [
    "DEFAULT_SORT_KEY",
    "SortKey",
    "parse_sort_key",
    "project",
    "shuffle",
]
