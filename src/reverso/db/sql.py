"""SQLAlchemy async Core implementation of the content store."""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from reverso.constants import DEFAULT_LOCALE
from reverso.core.ports.store import ContentHistoryRecord, ContentRecord, FieldRecord, PageRecord, SectionRecord
from reverso.db.tables import (
    content_history_table,
    content_table,
    field_table,
    metadata,
    page_table,
    section_table,
)
from reverso.errors import FieldNotFoundError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_row(values: dict[str, Any]) -> dict[str, Any]:
    now = _utcnow()
    return {"id": str(uuid.uuid4()), **values, "created_at": now, "updated_at": now}


class SqlStoreTransaction:
    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def _select(self, table: sa.Table, *order_by: Any) -> list[dict[str, Any]]:
        result = await self._conn.execute(sa.select(table).order_by(*order_by))
        return [dict(row._mapping) for row in result]

    async def _insert(self, table: sa.Table, values: dict[str, Any]) -> dict[str, Any]:
        row = _new_row(values)
        await self._conn.execute(sa.insert(table).values(**row))
        return row

    async def _update(self, table: sa.Table, row_id: str, values: dict[str, Any]) -> None:
        await self._conn.execute(
            sa.update(table).where(table.c.id == row_id).values(**values, updated_at=_utcnow())
        )

    async def _delete(self, table: sa.Table, row_id: str) -> None:
        await self._conn.execute(sa.delete(table).where(table.c.id == row_id))

    async def list_pages(self) -> list[PageRecord]:
        return [PageRecord(**row) for row in await self._select(page_table, page_table.c.slug)]

    async def list_sections(self) -> list[SectionRecord]:
        rows = await self._select(section_table, section_table.c.page_id, section_table.c.sort_order)
        return [SectionRecord(**row) for row in rows]

    async def list_fields(self) -> list[FieldRecord]:
        return [FieldRecord(**row) for row in await self._select(field_table, field_table.c.path)]

    async def insert_page(self, values: dict[str, Any]) -> PageRecord:
        return PageRecord(**await self._insert(page_table, values))

    async def update_page(self, page_id: str, values: dict[str, Any]) -> None:
        await self._update(page_table, page_id, values)

    async def delete_page(self, page_id: str) -> None:
        await self._delete(page_table, page_id)

    async def insert_section(self, values: dict[str, Any]) -> SectionRecord:
        return SectionRecord(**await self._insert(section_table, values))

    async def update_section(self, section_id: str, values: dict[str, Any]) -> None:
        await self._update(section_table, section_id, values)

    async def delete_section(self, section_id: str) -> None:
        await self._delete(section_table, section_id)

    async def insert_field(self, values: dict[str, Any]) -> FieldRecord:
        return FieldRecord(**await self._insert(field_table, values))

    async def update_field(self, field_id: str, values: dict[str, Any]) -> None:
        await self._update(field_table, field_id, values)

    async def delete_field(self, field_id: str) -> None:
        await self._delete(field_table, field_id)


class SqlContentStore:
    """Content store backed by SQLite (aiosqlite) or PostgreSQL (asyncpg)."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlStoreTransaction]:
        async with self._engine.begin() as conn:
            yield SqlStoreTransaction(conn)

    async def ensure_ready(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(sa.text("SELECT 1"))
        except Exception:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def list_pages(self) -> list[PageRecord]:
        async with self.transaction() as tx:
            return await tx.list_pages()

    async def list_sections(self) -> list[SectionRecord]:
        async with self.transaction() as tx:
            return await tx.list_sections()

    async def list_fields(self) -> list[FieldRecord]:
        async with self.transaction() as tx:
            return await tx.list_fields()

    # -----------------------------------------------------------------------
    # Content
    # -----------------------------------------------------------------------

    @staticmethod
    async def _field_id(conn: AsyncConnection, path: str) -> str:
        result = await conn.execute(sa.select(field_table.c.id).where(field_table.c.path == path))
        field_id = result.scalar_one_or_none()
        if field_id is None:
            raise FieldNotFoundError(path)
        return str(field_id)

    @staticmethod
    async def _content_row(conn: AsyncConnection, field_id: str, locale: str) -> dict[str, Any] | None:
        result = await conn.execute(
            sa.select(content_table).where(content_table.c.field_id == field_id, content_table.c.locale == locale)
        )
        row = result.first()
        return dict(row._mapping) if row is not None else None

    async def set_content(
        self,
        path: str,
        value: Any,
        locale: str = DEFAULT_LOCALE,
        changed_by: str | None = None,
    ) -> ContentRecord:
        """Store ``value`` for a field, keeping the previous value in the history."""
        async with self._engine.begin() as conn:
            field_id = await self._field_id(conn, path)
            existing = await self._content_row(conn, field_id, locale)
            now = _utcnow()
            if existing is None:
                row = {
                    "id": str(uuid.uuid4()),
                    "field_id": field_id,
                    "locale": locale,
                    "value": value,
                    "created_at": now,
                    "updated_at": now,
                }
                await conn.execute(sa.insert(content_table).values(**row))
                return ContentRecord(**row)

            await conn.execute(
                sa.insert(content_history_table).values(
                    id=str(uuid.uuid4()),
                    content_id=existing["id"],
                    value=existing["value"],
                    changed_by=changed_by,
                    changed_at=now,
                )
            )
            await conn.execute(
                sa.update(content_table).where(content_table.c.id == existing["id"]).values(value=value, updated_at=now)
            )
            return ContentRecord(**{**existing, "value": value, "updated_at": now})

    async def get_content(self, path: str, locale: str = DEFAULT_LOCALE) -> ContentRecord | None:
        async with self._engine.connect() as conn:
            query = (
                sa.select(content_table)
                .join(field_table, field_table.c.id == content_table.c.field_id)
                .where(field_table.c.path == path, content_table.c.locale == locale)
            )
            row = (await conn.execute(query)).first()
        return ContentRecord(**row._mapping) if row is not None else None

    async def list_content_history(self, path: str, locale: str = DEFAULT_LOCALE) -> list[ContentHistoryRecord]:
        async with self._engine.connect() as conn:
            query = (
                sa.select(content_history_table)
                .join(content_table, content_table.c.id == content_history_table.c.content_id)
                .join(field_table, field_table.c.id == content_table.c.field_id)
                .where(field_table.c.path == path, content_table.c.locale == locale)
                .order_by(content_history_table.c.changed_at)
            )
            result = await conn.execute(query)
            return [ContentHistoryRecord(**row._mapping) for row in result]
