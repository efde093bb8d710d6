"""Storage configuration defaults."""

# Local SQLite file holding the collection cache and the stats snapshot
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///vinylwall.db"
