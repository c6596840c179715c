"""Fixtures for integration tests against a SQLite database file."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from reverso.db import SqlContentStore, get_engine

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def alembic_ini() -> Path:
    return REPO_ROOT / "alembic.ini"


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """Async connection URL for a throwaway database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'reverso.db'}"


@pytest_asyncio.fixture
async def store(sqlite_url: str) -> AsyncGenerator[SqlContentStore, None]:
    """Per-test store so each event loop gets its own connection pool."""
    instance = SqlContentStore(get_engine(sqlite_url))
    await instance.ensure_ready()
    yield instance
    await instance.dispose()
