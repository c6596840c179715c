"""Keyed comparison of two schema snapshots."""

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from reverso.models import EntityChange, FieldSchema, PageSchema, ProjectSchema, SchemaDiff, SectionSchema

_PAGE_ATTRIBUTES = ("name", "source_files")
_SECTION_ATTRIBUTES = ("name", "is_repeater", "repeater_config")
_FIELD_ATTRIBUTES = (
    "type",
    "label",
    "placeholder",
    "required",
    "validation",
    "options",
    "condition",
    "config",
    "default_value",
    "help",
)

_T = TypeVar("_T")


def _index_pages(schema: ProjectSchema | None) -> dict[str, PageSchema]:
    if schema is None:
        return {}
    return {page.slug: page for page in schema.pages}


def _index_sections(schema: ProjectSchema | None) -> dict[str, SectionSchema]:
    if schema is None:
        return {}
    return {f"{page.slug}.{section.slug}": section for page in schema.pages for section in page.sections}


def _index_fields(schema: ProjectSchema | None) -> dict[str, FieldSchema]:
    if schema is None:
        return {}
    return {field.path: field for field in schema.iter_fields()}


def _changed_attributes(before: Any, after: Any, attributes: tuple[str, ...]) -> list[str]:
    return [name for name in attributes if getattr(before, name) != getattr(after, name)]


def _compare(
    previous: Mapping[str, _T],
    current: Mapping[str, _T],
    changed: Callable[[_T, _T], list[str]],
) -> tuple[list[str], list[str], list[EntityChange]]:
    added = sorted(current.keys() - previous.keys())
    removed = sorted(previous.keys() - current.keys())
    changes: list[EntityChange] = []
    for key in sorted(current.keys() & previous.keys()):
        names = changed(previous[key], current[key])
        if names:
            changes.append(EntityChange(key=key, changes=names))
    return added, removed, changes


def diff_schemas(
    previous: ProjectSchema | None,
    current: ProjectSchema,
    *,
    include_order: bool = False,
) -> SchemaDiff:
    """Compare pages by slug, sections by ``page.section`` and fields by path.

    ``previous=None`` is treated as an empty schema. ``sort_order`` only counts as a
    change when ``include_order`` is set.
    """
    order = ("sort_order",) if include_order else ()

    pages = _compare(
        _index_pages(previous),
        _index_pages(current),
        lambda before, after: _changed_attributes(before, after, _PAGE_ATTRIBUTES),
    )
    sections = _compare(
        _index_sections(previous),
        _index_sections(current),
        lambda before, after: _changed_attributes(before, after, _SECTION_ATTRIBUTES + order),
    )
    fields = _compare(
        _index_fields(previous),
        _index_fields(current),
        lambda before, after: _changed_attributes(before, after, _FIELD_ATTRIBUTES + order),
    )

    return SchemaDiff(
        pages_added=pages[0],
        pages_removed=pages[1],
        pages_changed=pages[2],
        sections_added=sections[0],
        sections_removed=sections[1],
        sections_changed=sections[2],
        fields_added=fields[0],
        fields_removed=fields[1],
        fields_changed=fields[2],
    )
