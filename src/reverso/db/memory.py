import asyncio
import copy
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from reverso.constants import DEFAULT_LOCALE
from reverso.core.ports.store import ContentHistoryRecord, ContentRecord, FieldRecord, PageRecord, SectionRecord
from reverso.errors import FieldNotFoundError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStoreTransaction:
    def __init__(self, store: "InMemoryContentStore") -> None:
        self._store = store

    async def list_pages(self) -> list[PageRecord]:
        return sorted(self._store.pages.values(), key=lambda r: r.slug)

    async def list_sections(self) -> list[SectionRecord]:
        return sorted(self._store.sections.values(), key=lambda r: (r.page_id, r.sort_order))

    async def list_fields(self) -> list[FieldRecord]:
        return sorted(self._store.fields.values(), key=lambda r: r.path)

    async def insert_page(self, values: dict[str, Any]) -> PageRecord:
        if any(page.slug == values["slug"] for page in self._store.pages.values()):
            raise ValueError(f"duplicate page slug '{values['slug']}'")
        now = _utcnow()
        record = PageRecord(id=str(uuid.uuid4()), **values, created_at=now, updated_at=now)
        self._store.pages[record.id] = record
        return record

    async def update_page(self, page_id: str, values: dict[str, Any]) -> None:
        self._store.pages[page_id] = replace(self._store.pages[page_id], **values, updated_at=_utcnow())

    async def delete_page(self, page_id: str) -> None:
        del self._store.pages[page_id]
        for section in [s for s in self._store.sections.values() if s.page_id == page_id]:
            await self.delete_section(section.id)

    async def insert_section(self, values: dict[str, Any]) -> SectionRecord:
        if values["page_id"] not in self._store.pages:
            raise ValueError(f"unknown page id '{values['page_id']}'")
        key = (values["page_id"], values["slug"])
        if any((s.page_id, s.slug) == key for s in self._store.sections.values()):
            raise ValueError(f"duplicate section slug '{values['slug']}'")
        now = _utcnow()
        record = SectionRecord(id=str(uuid.uuid4()), **values, created_at=now, updated_at=now)
        self._store.sections[record.id] = record
        return record

    async def update_section(self, section_id: str, values: dict[str, Any]) -> None:
        self._store.sections[section_id] = replace(self._store.sections[section_id], **values, updated_at=_utcnow())

    async def delete_section(self, section_id: str) -> None:
        del self._store.sections[section_id]
        for field in [f for f in self._store.fields.values() if f.section_id == section_id]:
            await self.delete_field(field.id)

    async def insert_field(self, values: dict[str, Any]) -> FieldRecord:
        if values["section_id"] not in self._store.sections:
            raise ValueError(f"unknown section id '{values['section_id']}'")
        if any(f.path == values["path"] for f in self._store.fields.values()):
            raise ValueError(f"duplicate field path '{values['path']}'")
        now = _utcnow()
        record = FieldRecord(id=str(uuid.uuid4()), **values, created_at=now, updated_at=now)
        self._store.fields[record.id] = record
        return record

    async def update_field(self, field_id: str, values: dict[str, Any]) -> None:
        self._store.fields[field_id] = replace(self._store.fields[field_id], **values, updated_at=_utcnow())

    async def delete_field(self, field_id: str) -> None:
        del self._store.fields[field_id]
        doomed = [c.id for c in self._store.contents.values() if c.field_id == field_id]
        for content_id in doomed:
            del self._store.contents[content_id]
        self._store.history = [h for h in self._store.history if h.content_id not in doomed]


class InMemoryContentStore:
    """Dict-backed store; each transaction restores a snapshot when it fails."""

    def __init__(self) -> None:
        self.pages: dict[str, PageRecord] = {}
        self.sections: dict[str, SectionRecord] = {}
        self.fields: dict[str, FieldRecord] = {}
        self.contents: dict[str, ContentRecord] = {}
        self.history: list[ContentHistoryRecord] = []
        self._lock = asyncio.Lock()

    def _snapshot(self) -> tuple[Any, ...]:
        return (dict(self.pages), dict(self.sections), dict(self.fields), dict(self.contents), list(self.history))

    def _restore(self, snapshot: tuple[Any, ...]) -> None:
        self.pages, self.sections, self.fields, self.contents, self.history = snapshot

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryStoreTransaction]:
        async with self._lock:
            snapshot = self._snapshot()
            try:
                yield InMemoryStoreTransaction(self)
            except BaseException:
                self._restore(snapshot)
                raise

    async def ensure_ready(self) -> None:
        pass

    async def ping(self) -> bool:
        return True

    async def dispose(self) -> None:
        pass

    async def list_pages(self) -> list[PageRecord]:
        return await InMemoryStoreTransaction(self).list_pages()

    async def list_sections(self) -> list[SectionRecord]:
        return await InMemoryStoreTransaction(self).list_sections()

    async def list_fields(self) -> list[FieldRecord]:
        return await InMemoryStoreTransaction(self).list_fields()

    def _field_by_path(self, path: str) -> FieldRecord:
        for field in self.fields.values():
            if field.path == path:
                return field
        raise FieldNotFoundError(path)

    def _content_for(self, field_id: str, locale: str) -> ContentRecord | None:
        for content in self.contents.values():
            if content.field_id == field_id and content.locale == locale:
                return content
        return None

    async def set_content(
        self,
        path: str,
        value: Any,
        locale: str = DEFAULT_LOCALE,
        changed_by: str | None = None,
    ) -> ContentRecord:
        async with self._lock:
            field = self._field_by_path(path)
            existing = self._content_for(field.id, locale)
            now = _utcnow()
            if existing is None:
                record = ContentRecord(
                    id=str(uuid.uuid4()),
                    field_id=field.id,
                    locale=locale,
                    value=copy.deepcopy(value),
                    created_at=now,
                    updated_at=now,
                )
            else:
                self.history.append(
                    ContentHistoryRecord(
                        id=str(uuid.uuid4()),
                        content_id=existing.id,
                        value=existing.value,
                        changed_by=changed_by,
                        changed_at=now,
                    )
                )
                record = replace(existing, value=copy.deepcopy(value), updated_at=now)
            self.contents[record.id] = record
            return record

    async def get_content(self, path: str, locale: str = DEFAULT_LOCALE) -> ContentRecord | None:
        for field in self.fields.values():
            if field.path == path:
                return self._content_for(field.id, locale)
        return None

    async def list_content_history(self, path: str, locale: str = DEFAULT_LOCALE) -> list[ContentHistoryRecord]:
        content = await self.get_content(path, locale)
        if content is None:
            return []
        return [entry for entry in self.history if entry.content_id == content.id]
