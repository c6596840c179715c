"""Reconcile a schema document with the persisted pages, sections and fields."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import Any

from reverso.core.ports.store import ContentStore, FieldRecord, PageRecord, SectionRecord, StoreTransaction
from reverso.errors import SyncError
from reverso.models import (
    EntityChange,
    EntitySyncCounts,
    FieldSchema,
    PageSchema,
    ProjectSchema,
    SchemaDiff,
    SectionSchema,
    SyncResult,
)

logger = logging.getLogger(__name__)


@contextmanager
def _syncing(entity: str, key: str) -> Iterator[None]:
    try:
        yield
    except SyncError:
        raise
    except Exception as exc:
        raise SyncError(entity, key, exc) from exc


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


def page_values(page: PageSchema) -> dict[str, Any]:
    return {
        "slug": page.slug,
        "name": page.name,
        "source_files": list(page.source_files),
        "field_count": page.field_count,
    }


def section_values(section: SectionSchema, page_id: str) -> dict[str, Any]:
    repeater_config = section.repeater_config
    return {
        "page_id": page_id,
        "slug": section.slug,
        "name": section.name,
        "is_repeater": section.is_repeater,
        "repeater_config": repeater_config.model_dump(mode="json", by_alias=True) if repeater_config else None,
        "sort_order": section.sort_order,
    }


def field_values(field: FieldSchema, section_id: str) -> dict[str, Any]:
    return {
        "section_id": section_id,
        "path": field.path,
        "type": field.type,
        "label": field.label,
        "placeholder": field.placeholder,
        "required": field.required,
        "validation": field.validation,
        "options": [option.model_dump(mode="json") for option in field.options] if field.options is not None else None,
        "condition": field.condition,
        "config": field.config.model_dump(mode="json", by_alias=True),
        "default_value": field.default_value,
        "help": field.help,
        "element_tag": field.element_tag,
        "source_files": list(field.source_files),
        "source_line": field.source_line,
        "source_column": field.source_column,
        "sort_order": field.sort_order,
    }


def describe_sync(result: SyncResult) -> str:
    parts = []
    for entity, counts in (("pages", result.pages), ("sections", result.sections), ("fields", result.fields)):
        parts.append(f"{entity} +{counts.created} ~{counts.updated} -{counts.deleted}")
    return ", ".join(parts)


def _changed(record: PageRecord | SectionRecord | FieldRecord, values: dict[str, Any]) -> list[str]:
    return [name for name, value in values.items() if getattr(record, name) != value]


def _differs(record: PageRecord | SectionRecord | FieldRecord, values: dict[str, Any]) -> bool:
    return bool(_changed(record, values))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class _SchemaSync:
    def __init__(self, tx: StoreTransaction, result: SyncResult) -> None:
        self._tx = tx
        self._result = result
        self._pages: dict[str, PageRecord] = {}
        self._sections: dict[tuple[str, str], SectionRecord] = {}
        self._fields: dict[str, FieldRecord] = {}
        self._field_sections: dict[str, str] = {}

    async def prefetch(self) -> None:
        with _syncing("store", "prefetch"):
            self._pages = {record.slug: record for record in await self._tx.list_pages()}
            self._sections = {(record.page_id, record.slug): record for record in await self._tx.list_sections()}
            self._fields = {record.path: record for record in await self._tx.list_fields()}
        self._field_sections = {path: record.section_id for path, record in self._fields.items()}

    async def _upsert(
        self,
        counts: EntitySyncCounts,
        entity: str,
        key: str,
        existing: PageRecord | SectionRecord | FieldRecord | None,
        values: dict[str, Any],
        insert: Callable[[dict[str, Any]], Awaitable[Any]],
        update: Callable[[str, dict[str, Any]], Awaitable[None]],
    ) -> str:
        with _syncing(entity, key):
            if existing is None:
                record = await insert(values)
                counts.created += 1
                logger.debug("Created %s %s", entity, key)
                return record.id
            if _differs(existing, values):
                await update(existing.id, values)
                counts.updated += 1
                logger.debug("Updated %s %s", entity, key)
            return existing.id

    async def write(self, schema: ProjectSchema) -> set[tuple[str, str]]:
        tx, result = self._tx, self._result
        wanted_sections: set[tuple[str, str]] = set()
        for page in schema.pages:
            page_id = await self._upsert(
                result.pages,
                "page",
                page.slug,
                self._pages.get(page.slug),
                page_values(page),
                tx.insert_page,
                tx.update_page,
            )
            for section in page.sections:
                key = (page_id, section.slug)
                wanted_sections.add(key)
                section_id = await self._upsert(
                    result.sections,
                    "section",
                    f"{page.slug}.{section.slug}",
                    self._sections.get(key),
                    section_values(section, page_id),
                    tx.insert_section,
                    tx.update_section,
                )
                for field in section.fields:
                    await self._upsert(
                        result.fields,
                        "field",
                        field.path,
                        self._fields.get(field.path),
                        field_values(field, section_id),
                        tx.insert_field,
                        tx.update_field,
                    )
                    self._field_sections[field.path] = section_id
        return wanted_sections

    async def delete_orphans(self, schema: ProjectSchema, wanted_sections: set[tuple[str, str]]) -> None:
        tx, result = self._tx, self._result
        wanted_pages = {page.slug for page in schema.pages}
        wanted_fields = {field.path for field in schema.iter_fields()}

        removed_pages: set[str] = set()
        for slug, page in sorted(self._pages.items()):
            if slug not in wanted_pages:
                with _syncing("page", slug):
                    await tx.delete_page(page.id)
                removed_pages.add(page.id)
                result.pages.deleted += 1
                logger.debug("Deleted page %s", slug)

        page_slugs = {page.id: slug for slug, page in self._pages.items()}
        removed_sections: set[str] = set()
        for key, section in sorted(self._sections.items()):
            if section.page_id in removed_pages:
                removed_sections.add(section.id)
            elif key not in wanted_sections:
                section_key = f"{page_slugs.get(section.page_id, section.page_id)}.{section.slug}"
                with _syncing("section", section_key):
                    await tx.delete_section(section.id)
                removed_sections.add(section.id)
                result.sections.deleted += 1
                logger.debug("Deleted section %s", section_key)

        for path in sorted(self._fields):
            if path in wanted_fields or self._field_sections[path] in removed_sections:
                continue
            with _syncing("field", path):
                await tx.delete_field(self._fields[path].id)
            result.fields.deleted += 1
            logger.debug("Deleted field %s", path)


async def sync_schema(store: ContentStore, schema: ProjectSchema, *, delete_removed: bool = False) -> SyncResult:
    """Upsert ``schema`` into ``store`` inside a single transaction.

    Unchanged rows are not rewritten, so repeating a sync reports no changes. Rows that
    disappeared from the schema are only deleted when ``delete_removed`` is set; the
    deleted counts cover explicitly removed rows, not cascaded dependants.

    Raises:
        SyncError: on any store failure. The transaction is rolled back.
    """
    started = time.perf_counter()
    result = SyncResult()
    try:
        async with store.transaction() as tx:
            engine = _SchemaSync(tx, result)
            await engine.prefetch()
            wanted_sections = await engine.write(schema)
            if delete_removed:
                await engine.delete_orphans(schema, wanted_sections)
    except SyncError:
        logger.error("Schema sync rolled back")
        raise
    except Exception as exc:
        raise SyncError("store", "transaction", exc) from exc

    result.duration = (time.perf_counter() - started) * 1000
    logger.info("Synced schema in %.1fms: %s", result.duration, describe_sync(result))
    return result


def _note(
    added: list[str],
    changed: list[EntityChange],
    key: str,
    record: PageRecord | SectionRecord | FieldRecord | None,
    values: dict[str, Any],
) -> None:
    if record is None:
        added.append(key)
        return
    names = _changed(record, values)
    if names:
        changed.append(EntityChange(key=key, changes=names))


async def schema_changes(store: ContentStore, schema: ProjectSchema) -> SchemaDiff:
    """Preview what :func:`sync_schema` would do to ``store`` without writing anything.

    Removed entries are what ``delete_removed=True`` would drop; sections are keyed as
    ``page.section`` and a field that moves to a new section reports ``section_id``.

    Raises:
        SyncError: when the store cannot be read.
    """
    with _syncing("store", "prefetch"):
        pages = {record.slug: record for record in await store.list_pages()}
        section_records = await store.list_sections()
        fields = {record.path: record for record in await store.list_fields()}

    page_slugs = {record.id: slug for slug, record in pages.items()}
    sections = {
        f"{page_slugs[record.page_id]}.{record.slug}": record
        for record in section_records
        if record.page_id in page_slugs
    }

    diff = SchemaDiff()
    for page in schema.pages:
        existing_page = pages.get(page.slug)
        _note(diff.pages_added, diff.pages_changed, page.slug, existing_page, page_values(page))
        for section in page.sections:
            key = f"{page.slug}.{section.slug}"
            existing_section = sections.get(key)
            page_id = existing_page.id if existing_page is not None else ""
            _note(diff.sections_added, diff.sections_changed, key, existing_section, section_values(section, page_id))
            section_id = existing_section.id if existing_section is not None else ""
            for field in section.fields:
                _note(
                    diff.fields_added,
                    diff.fields_changed,
                    field.path,
                    fields.get(field.path),
                    field_values(field, section_id),
                )

    wanted_sections = {f"{page.slug}.{section.slug}" for page in schema.pages for section in page.sections}
    wanted_fields = {field.path for field in schema.iter_fields()}
    diff.pages_removed = sorted(set(pages) - {page.slug for page in schema.pages})
    diff.sections_removed = sorted(set(sections) - wanted_sections)
    diff.fields_removed = sorted(set(fields) - wanted_fields)
    logger.debug("Pending schema changes: %s", diff.model_dump(exclude_defaults=True))
    return diff
