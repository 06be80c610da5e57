"""Shared test fixtures."""

from pathlib import Path

import pytest
import pytest_asyncio

from helya.config.settings import Settings
from helya.db.database import HelyaDatabase


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing the database at a per-test file."""
    return Settings(
        credentials={"discord_token": "test-token", "osu": {"client_id": 1, "client_secret": "secret"}},
        database={"path": tmp_path / "helya.db"},
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> HelyaDatabase:
    """A migrated database on disk (WAL does not apply to :memory:)."""
    db = await HelyaDatabase.create(settings)
    yield db
    await db.dispose()
