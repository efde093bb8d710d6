"""Main entry point: load one collection, report stats, optionally export."""

import asyncio
import logging
from pathlib import Path

from vinylwall.discogs.exceptions import CollectionClientError
from vinylwall.export.exceptions import ExportError
from vinylwall.logging import configure_logging
from vinylwall.session import WallSession
from vinylwall.settings import WallSettings, get_settings

logger = logging.getLogger(__name__)


def _log_stats(session: WallSession) -> None:
    stats = session.stats
    if stats is None:
        return
    logger.info(
        "%s: %d records, %d artists, years %s-%s",
        session.owner_key,
        stats.total_shown,
        stats.unique_artist_count,
        stats.oldest_year if stats.oldest_year is not None else "?",
        stats.newest_year if stats.newest_year is not None else "?",
    )
    for rank, artist in enumerate(stats.top_artists, start=1):
        logger.info("  %d. %s (%d)", rank, artist.name, artist.count)


async def main(settings: WallSettings | None = None) -> int:
    """Run one load/export pass. Returns a process exit code."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    if not settings.OWNER_KEY:
        logger.error("OWNER_KEY is not set")
        return 2

    session = WallSession.from_settings(settings)
    try:
        await session.open()
        try:
            await session.load_collection(settings.OWNER_KEY)
        except CollectionClientError as exc:
            logger.error("Could not load collection: %s", exc)
            return 1
        _log_stats(session)

        if settings.EXPORT_PATH:
            try:
                blob = await session.export_composite()
            except ExportError as exc:
                logger.error("%s", exc)
                return 1
            path = Path(settings.EXPORT_PATH).expanduser()
            path.write_bytes(blob.data)
            logger.info("Wrote %dx%d composite to %s (%d bytes)", blob.width, blob.height, path, blob.size)
    finally:
        await session.close()
    return 0


def run() -> None:
    """Console script entry point."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
