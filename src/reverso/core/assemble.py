"""Assemble extracted markers into a nested Page -> Section -> Field schema."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from reverso.constants import DEFAULT_FIELD_TYPE
from reverso.core.field_types import (
    build_field_config,
    coerce_bool,
    coerce_number,
    is_valid_field_type,
    parse_options,
)
from reverso.core.naming import format_label
from reverso.core.paths import field_name, has_field_segments, parse_path, repeater_prefix
from reverso.errors import PathError, SchemaConflictError
from reverso.models import (
    DetectedField,
    FieldSchema,
    PageSchema,
    ParsedPath,
    ProjectSchema,
    RepeaterConfig,
    ScanIssue,
    SchemaMeta,
    SectionSchema,
)

logger = logging.getLogger(__name__)

ConflictPolicy = Literal["first-wins", "error"]


@dataclass
class _FieldDraft:
    parsed: ParsedPath
    first: DetectedField
    files: set[str] = field(default_factory=set)


@dataclass
class _SectionDraft:
    slug: str
    label: str | None = None
    root: DetectedField | None = None
    has_repeater_fields: bool = False
    fields: dict[str, _FieldDraft] = field(default_factory=dict)


@dataclass
class _PageDraft:
    slug: str
    files: set[str] = field(default_factory=set)
    sections: dict[str, _SectionDraft] = field(default_factory=dict)

    def section(self, slug: str) -> _SectionDraft:
        if slug not in self.sections:
            self.sections[slug] = _SectionDraft(slug=slug)
        return self.sections[slug]


def _traversal_key(detected: DetectedField) -> tuple[str, int, int, str, tuple[tuple[str, str], ...]]:
    return (detected.file, detected.line, detected.column, detected.path, tuple(sorted(detected.attributes.items())))


def _location(detected: DetectedField) -> str:
    return f"{detected.file}:{detected.line}:{detected.column}"


def _issue(detected: DetectedField, message: str) -> ScanIssue:
    return ScanIssue(
        kind="validation",
        message=message,
        file=detected.file,
        line=detected.line,
        column=detected.column,
        path=detected.path,
    )


def _differing_modifiers(first: DetectedField, other: DetectedField) -> list[str]:
    keys = set(first.attributes) | set(other.attributes)
    return sorted(key for key in keys if first.attributes.get(key) != other.attributes.get(key))


def _build_field(draft: _FieldDraft, sort_order: int, warnings: list[ScanIssue]) -> FieldSchema:
    detected = draft.first
    attributes = detected.attributes

    field_type = attributes.get("type", DEFAULT_FIELD_TYPE).strip() or DEFAULT_FIELD_TYPE
    if not is_valid_field_type(field_type):
        warnings.append(_issue(detected, f"unknown field type '{field_type}', using '{DEFAULT_FIELD_TYPE}'"))
        field_type = DEFAULT_FIELD_TYPE

    config = build_field_config(field_type, attributes)
    for problem in config.problems():
        warnings.append(_issue(detected, problem))

    raw_options = attributes.get("options")
    return FieldSchema(
        path=detected.path,
        type=field_type,
        label=attributes.get("label") or format_label(field_name(draft.parsed)),
        placeholder=attributes.get("placeholder") or None,
        required=bool(coerce_bool(attributes.get("required"))),
        validation=attributes.get("validation") or None,
        options=parse_options(raw_options) if raw_options else None,
        condition=attributes.get("condition") or None,
        config=config,
        default_value=attributes.get("default") or detected.text_content or None,
        help=attributes.get("help") or None,
        element_tag=detected.element_tag,
        source_files=sorted(draft.files),
        source_line=detected.line,
        source_column=detected.column,
        sort_order=sort_order,
    )


def _repeater_bound(root: DetectedField, name: str, warnings: list[ScanIssue]) -> int | None:
    value = coerce_number(root.attributes.get(name))
    if value is None:
        return None
    if isinstance(value, float):
        raw = root.attributes[name]
        warnings.append(_issue(root, f"repeater {name} '{raw}' is not an integer, using {int(value)}"))
    return int(value)


def _repeater_config(root: DetectedField | None, warnings: list[ScanIssue]) -> RepeaterConfig | None:
    if root is None:
        return None
    return RepeaterConfig(
        min=_repeater_bound(root, "min", warnings),
        max=_repeater_bound(root, "max", warnings),
        item_label=root.attributes.get("label") or None,
    )


def _ordered_fields(drafts: Iterable[_FieldDraft], field_order: Sequence[str]) -> list[_FieldDraft]:
    rank = {path: index for index, path in enumerate(field_order)}
    # stable sort: configured paths first, the rest keep their traversal order
    ordered = sorted(drafts, key=lambda draft: _traversal_key(draft.first))
    return sorted(ordered, key=lambda draft: rank.get(draft.first.path, len(rank)))


def assemble_schema(
    fields: Iterable[DetectedField],
    *,
    generated_at: datetime | None = None,
    meta: SchemaMeta | None = None,
    field_order: Sequence[str] = (),
    conflict_policy: ConflictPolicy = "first-wins",
) -> tuple[ProjectSchema, list[ScanIssue]]:
    """Build a ``ProjectSchema`` from extracted markers.

    Returns the schema together with the validation warnings produced while building
    it. Markers are visited in ``(file, line, column)`` order, so the result does not
    depend on the order of ``fields``.

    Raises:
        SchemaConflictError: when ``conflict_policy`` is ``"error"`` and one path is
            declared with different modifiers.
    """
    warnings: list[ScanIssue] = []
    ordered = sorted(fields, key=_traversal_key)

    parsed_markers: list[tuple[DetectedField, ParsedPath]] = []
    for detected in ordered:
        try:
            parsed_markers.append((detected, parse_path(detected.path)))
        except PathError as exc:
            warnings.append(_issue(detected, str(exc)))

    prefixes = {repeater_prefix(parsed) for _, parsed in parsed_markers if parsed.is_repeater}

    pages: dict[str, _PageDraft] = {}
    for detected, parsed in parsed_markers:
        page = pages.setdefault(parsed.page_slug, _PageDraft(slug=parsed.page_slug))
        page.files.add(detected.file)
        section = page.section(parsed.section_slug)

        is_root = detected.path in prefixes or (parsed.is_repeater and not has_field_segments(parsed))
        if is_root:
            if section.root is None:
                section.root = detected
            elif _root_prefix(section.root) != _root_prefix(detected):
                warnings.append(
                    _issue(
                        detected,
                        f"section '{parsed.page_slug}.{parsed.section_slug}' already has repeater "
                        f"'{section.root.path}' ({_location(section.root)}); ignoring this one",
                    )
                )
            continue

        if not has_field_segments(parsed):
            label = detected.attributes.get("label")
            if label and section.label is None:
                section.label = label
            continue

        section.has_repeater_fields = section.has_repeater_fields or parsed.is_repeater
        draft = section.fields.get(detected.path)
        if draft is None:
            section.fields[detected.path] = _FieldDraft(parsed=parsed, first=detected, files={detected.file})
            continue

        draft.files.add(detected.file)
        differing = _differing_modifiers(draft.first, detected)
        if not differing:
            continue
        if conflict_policy == "error":
            raise SchemaConflictError(detected.path, _location(draft.first), _location(detected), differing)
        warnings.append(
            _issue(
                detected,
                f"conflicting modifiers ({', '.join(differing)}); keeping declaration at {_location(draft.first)}",
            )
        )

    page_schemas: list[PageSchema] = []
    for page_slug in sorted(pages):
        page = pages[page_slug]
        section_schemas: list[SectionSchema] = []
        for section_index, section in enumerate(page.sections.values()):
            field_schemas = [
                _build_field(draft, order, warnings)
                for order, draft in enumerate(_ordered_fields(section.fields.values(), field_order))
            ]
            section_schemas.append(
                SectionSchema(
                    slug=section.slug,
                    name=section.label or format_label(section.slug),
                    is_repeater=section.has_repeater_fields or section.root is not None,
                    repeater_config=_repeater_config(section.root, warnings),
                    sort_order=section_index,
                    fields=field_schemas,
                )
            )
        page_schemas.append(
            PageSchema(
                slug=page_slug,
                name=format_label(page_slug),
                source_files=sorted(page.files),
                field_count=sum(len(section.fields) for section in section_schemas),
                sections=section_schemas,
            )
        )

    schema = ProjectSchema(
        generated_at=generated_at or datetime.now(timezone.utc),
        pages=page_schemas,
        page_count=len(page_schemas),
        total_fields=sum(page.field_count for page in page_schemas),
        meta=meta or SchemaMeta(),
    )
    logger.debug(
        "Assembled %d page(s), %d field(s) with %d warning(s)", schema.page_count, schema.total_fields, len(warnings)
    )
    return schema, warnings


def _root_prefix(detected: DetectedField) -> str:
    parsed = parse_path(detected.path)
    return repeater_prefix(parsed) or detected.path
