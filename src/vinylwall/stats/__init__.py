"""Collection statistics."""

from vinylwall.stats.models import ArtistCount, StatsSnapshot
from vinylwall.stats.service import StatsStore, compute_stats, strip_disambiguation

__all__ = [
    "ArtistCount",
    "StatsSnapshot",
    "StatsStore",
    "compute_stats",
    "strip_disambiguation",
]
