from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from reverso.core.ports.store import ContentStore
from reverso.db.engine import get_engine, resolve_database_url
from reverso.db.memory import InMemoryContentStore, InMemoryStoreTransaction
from reverso.db.sql import SqlContentStore, SqlStoreTransaction

MEMORY_URL = "memory://"


def create_store(url: str | None = None) -> ContentStore:
    db_url = resolve_database_url(url)
    if db_url == MEMORY_URL:
        return InMemoryContentStore()
    return SqlContentStore(get_engine(db_url))


@asynccontextmanager
async def open_store(url: str | None = None) -> AsyncIterator[ContentStore]:
    """Yield a ready store for ``url`` and dispose of it afterwards."""
    store = create_store(url)
    try:
        await store.ensure_ready()
        yield store
    finally:
        await store.dispose()


__all__ = [
    "MEMORY_URL",
    "ContentStore",
    "InMemoryContentStore",
    "InMemoryStoreTransaction",
    "SqlContentStore",
    "SqlStoreTransaction",
    "create_store",
    "get_engine",
    "open_store",
    "resolve_database_url",
]
