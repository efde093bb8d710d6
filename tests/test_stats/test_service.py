"""Tests for statistics aggregation and the snapshot store."""

from datetime import UTC, datetime

from sqlalchemy import text

from vinylwall.db.models import StatsSnapshotRecord
from vinylwall.db.session import DatabaseManager
from vinylwall.discogs.models import CollectionItem
from vinylwall.stats.service import StatsStore, compute_stats, strip_disambiguation


def _item(item_id: str, artist: str = "", year: int | None = None) -> CollectionItem:
    return CollectionItem(id=item_id, title=f"Title {item_id}", artist_display=artist, year=year)


# ------------------------------------------------------------------
# compute_stats
# ------------------------------------------------------------------


class TestComputeStats:
    """Tests for compute_stats."""

    def test_empty_set(self) -> None:
        stats = compute_stats([])

        assert stats.total_shown == 0
        assert stats.unique_artist_count == 0
        assert stats.oldest_year is None
        assert stats.newest_year is None
        assert stats.top_artists == []

    def test_disambiguated_artists_are_merged(self) -> None:
        stats = compute_stats([_item("1", "Boards of Canada"), _item("2", "Boards of Canada (2)")])

        assert stats.unique_artist_count == 1
        assert stats.top_artists[0].name == "Boards of Canada"
        assert stats.top_artists[0].count == 2

    def test_suffix_stripped_inside_multi_artist_credit(self) -> None:
        stats = compute_stats([_item("1", "Madlib (3), MF Doom"), _item("2", "Madlib, MF Doom")])
        assert [(a.name, a.count) for a in stats.top_artists] == [("Madlib, MF Doom", 2)]

    def test_top_artists_limited_to_eight_with_first_seen_ties(self) -> None:
        items = [_item("a1", "Alpha"), _item("a2", "Alpha"), _item("a3", "Alpha")]
        items += [_item(f"x{i}", f"Artist {i}") for i in range(10)]
        items += [_item("z1", "Zeta"), _item("z2", "Zeta")]

        stats = compute_stats(items)

        names = [a.name for a in stats.top_artists]
        assert len(names) == 8
        assert names[:2] == ["Alpha", "Zeta"]
        assert names[2:] == [f"Artist {i}" for i in range(6)]
        assert stats.unique_artist_count == 12

    def test_year_range_ignores_missing_and_zero_years(self) -> None:
        items = [_item("1", year=1998), _item("2", year=0), _item("3"), _item("4", year=1972), _item("5", year=2015)]

        stats = compute_stats(items)

        assert stats.oldest_year == 1972
        assert stats.newest_year == 2015

    def test_string_years_are_parsed(self) -> None:
        items = [
            CollectionItem.model_construct(id="1", title="A", artist_display="", year="1984"),
            CollectionItem.model_construct(id="2", title="B", artist_display="", year="n/a"),
        ]
        stats = compute_stats(items)
        assert stats.oldest_year == stats.newest_year == 1984

    def test_no_valid_years(self) -> None:
        stats = compute_stats([_item("1", year=0), _item("2")])
        assert stats.oldest_year is None
        assert stats.newest_year is None

    def test_empty_artists_are_not_counted(self) -> None:
        stats = compute_stats([_item("1", ""), _item("2", "Can")])
        assert stats.total_shown == 2
        assert stats.unique_artist_count == 1

    def test_owner_and_timestamp_are_stamped(self) -> None:
        now = datetime(2025, 3, 1, tzinfo=UTC)
        stats = compute_stats([_item("1", "Can")], owner_key="digger", now=now)
        assert stats.owner_key == "digger"
        assert stats.captured_at == now


def test_strip_disambiguation_only_touches_trailing_number() -> None:
    assert strip_disambiguation("Boards of Canada (2)") == "Boards of Canada"
    assert strip_disambiguation("Love (Live)") == "Love (Live)"
    assert strip_disambiguation("(12) Monkeys") == "(12) Monkeys"


# ------------------------------------------------------------------
# StatsStore
# ------------------------------------------------------------------


class TestStatsStore:
    """Tests for persisting the latest snapshot."""

    async def test_load_absent(self, db: DatabaseManager) -> None:
        assert await StatsStore(db).load() is None

    async def test_persist_and_load_round_trip(self, db: DatabaseManager) -> None:
        store = StatsStore(db)
        snapshot = compute_stats([_item("1", "Can", 1971)], owner_key="digger")

        await store.persist("digger", snapshot)
        loaded = await store.load()

        assert loaded is not None
        owner_key, restored = loaded
        assert owner_key == "digger"
        assert restored.total_shown == 1
        assert restored.top_artists == snapshot.top_artists
        assert restored.oldest_year == 1971

    async def test_persist_keeps_only_latest(self, db: DatabaseManager) -> None:
        store = StatsStore(db)
        await store.persist("first", compute_stats([_item("1", "Can")], owner_key="first"))
        await store.persist("second", compute_stats([], owner_key="second"))

        loaded = await store.load()

        assert loaded is not None
        assert loaded[0] == "second"
        assert loaded[1].total_shown == 0

    async def test_corrupt_snapshot_loads_as_absent(self, db: DatabaseManager) -> None:
        async with db.session() as session:
            session.add(
                StatsSnapshotRecord(id=1, owner_key="digger", snapshot_json="{{{", captured_at=datetime.now(UTC))
            )

        assert await StatsStore(db).load() is None

    async def test_unreadable_timestamp_loads_as_absent(self, db: DatabaseManager) -> None:
        async with db.session() as session:
            await session.execute(
                text(
                    "INSERT INTO stats_snapshot (id, owner_key, snapshot_json, captured_at) "
                    "VALUES (1, 'digger', '{}', 'garbage')"
                )
            )

        assert await StatsStore(db).load() is None

    async def test_clear(self, db: DatabaseManager) -> None:
        store = StatsStore(db)
        await store.persist("digger", compute_stats([]))
        await store.clear()
        assert await store.load() is None

    async def test_storage_failure_is_swallowed(self, bare_db: DatabaseManager) -> None:
        store = StatsStore(bare_db)
        await store.persist("digger", compute_stats([]))
        assert await store.load() is None
