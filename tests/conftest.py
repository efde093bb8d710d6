"""Shared test fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from vinylwall.db.session import DatabaseManager


@pytest.fixture
async def db(tmp_path: Path) -> AsyncGenerator[DatabaseManager]:
    """File-backed SQLite database with all tables created."""
    manager = DatabaseManager.from_url(f"sqlite+aiosqlite:///{tmp_path / 'wall.db'}")
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
async def bare_db(tmp_path: Path) -> AsyncGenerator[DatabaseManager]:
    """Database whose tables were never created, so every query fails."""
    manager = DatabaseManager.from_url(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    yield manager
    await manager.dispose()
