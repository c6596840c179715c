"""Reading and writing the schema document and its TypeScript definitions; diff rendering."""

import json
import logging
import re
from pathlib import Path

from pydantic import ValidationError

from reverso.constants import PATH_SEPARATOR, SCHEMA_FILE_NAME, TYPES_FILE_NAME
from reverso.core.field_types import DATE_TYPES, TEXT_TYPES
from reverso.core.naming import split_words
from reverso.core.paths import field_name, parse_path
from reverso.models import EntityChange, FieldSchema, ProjectSchema, SchemaDiff

logger = logging.getLogger(__name__)


def schema_path(output_dir: str | Path) -> Path:
    return Path(output_dir) / SCHEMA_FILE_NAME


def dump_schema(schema: ProjectSchema) -> str:
    """Serialize with camelCase keys; equal schemas produce identical text."""
    return schema.model_dump_json(by_alias=True, indent=2) + "\n"


def write_schema(schema: ProjectSchema, output_dir: str | Path) -> Path:
    path = schema_path(output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_schema(schema), encoding="utf-8")
    logger.info("Wrote schema document %s", path)
    return path


def read_schema(output_dir: str | Path) -> ProjectSchema | None:
    """Load the previous schema document, or None if there is no usable one."""
    path = schema_path(output_dir)
    if not path.exists():
        return None
    try:
        return ProjectSchema.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        logger.warning("Ignoring unreadable schema document %s: %s", path, exc)
        return None


def _section(title: str, added: list[str], removed: list[str], changed: list[EntityChange]) -> list[str]:
    lines: list[str] = []
    if not (added or removed or changed):
        return lines
    lines.append(f"{title}:")
    lines.extend(f"  + {key}" for key in added)
    lines.extend(f"  - {key}" for key in removed)
    lines.extend(f"  ~ {change.key} ({', '.join(change.changes)})" for change in changed)
    return lines


def format_diff(diff: SchemaDiff) -> str:
    if not diff.has_changes:
        return "No schema changes."
    lines = [
        *_section("Pages", diff.pages_added, diff.pages_removed, diff.pages_changed),
        *_section("Sections", diff.sections_added, diff.sections_removed, diff.sections_changed),
        *_section("Fields", diff.fields_added, diff.fields_removed, diff.fields_changed),
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# TypeScript definitions
# ---------------------------------------------------------------------------

# Types that are not plain strings; everything missing here and in the string set is ``unknown``.
_TS_TYPES: dict[str, str] = {
    "number": "number",
    "range": "number",
    "boolean": "boolean",
    "checkbox": "boolean",
    "multiselect": "string[]",
    "checkboxgroup": "string[]",
    "image": "ImageValue",
    "file": "FileValue",
    "video": "FileValue",
    "audio": "FileValue",
    "gallery": "GalleryValue",
    "link": "LinkValue",
    "map": "MapValue",
    "blocks": "BlocksValue",
}
_TS_STRING_TYPES = frozenset(
    TEXT_TYPES + DATE_TYPES + ("select", "radio", "buttongroup", "color", "oembed", "pagelink", "relation", "user")
)
_TS_VALUE_TYPES = ("BlocksValue", "FileValue", "GalleryValue", "ImageValue", "LinkValue", "MapValue")
_TS_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


def ts_type(field_type: str) -> str:
    if field_type in _TS_STRING_TYPES:
        return "string"
    return _TS_TYPES.get(field_type, "unknown")


def _pascal(*names: str) -> str:
    return "".join(word[:1].upper() + word[1:] for name in names for word in split_words(name))


def _property(name: str) -> str:
    return name if _TS_IDENTIFIER.fullmatch(name) else json.dumps(name)


def _field_property(field: FieldSchema) -> str:
    parsed = parse_path(field.path)
    return _property(PATH_SEPARATOR.join(parsed.field_segments) or field_name(parsed))


def _doc(lines: list[str], indent: str, text: str, include_comments: bool) -> None:
    if include_comments:
        lines.append(f"{indent}/** {text} */")


def generate_type_definitions(schema: ProjectSchema, *, include_comments: bool = True) -> str:
    """Render TypeScript interfaces describing the content shape of ``schema``.

    Each page becomes ``<Page>Content`` with one property per section, each section an
    interface of its fields, and repeater sections an array of ``<Page><Section>Item``.
    ``ReversoContent`` ties the pages together. Fields are optional unless required.
    """
    used = sorted({ts_type(field.type) for field in schema.iter_fields()} & set(_TS_VALUE_TYPES))
    lines = [
        "/**",
        " * Auto-generated types from the reverso schema document.",
        " * Do not edit; rerun `reverso scan` instead.",
        " */",
        "",
    ]
    if used:
        lines.extend([f"import type {{ {', '.join(used)} }} from '@reverso/core';", ""])

    for page in schema.pages:
        for section in page.sections:
            interface = _pascal(page.slug, section.slug) + ("Item" if section.is_repeater else "")
            _doc(lines, "", f"{section.name} section", include_comments)
            lines.append(f"export interface {interface} {{")
            for field in section.fields:
                _doc(lines, "  ", field.label, include_comments)
                optional = "" if field.required else "?"
                lines.append(f"  {_field_property(field)}{optional}: {ts_type(field.type)};")
            lines.extend(["}", ""])

        _doc(lines, "", f"Content for the {page.name} page", include_comments)
        lines.append(f"export interface {_pascal(page.slug)}Content {{")
        for section in page.sections:
            interface = _pascal(page.slug, section.slug)
            value = f"{interface}Item[]" if section.is_repeater else interface
            lines.append(f"  {_property(section.slug)}: {value};")
        lines.extend(["}", ""])

    _doc(lines, "", "Content for every page, keyed by page slug", include_comments)
    lines.append("export interface ReversoContent {")
    lines.extend(f"  {_property(page.slug)}: {_pascal(page.slug)}Content;" for page in schema.pages)
    lines.append("}")
    return "\n".join(lines) + "\n"


def types_path(output_dir: str | Path) -> Path:
    return Path(output_dir) / TYPES_FILE_NAME


def write_types(schema: ProjectSchema, output_dir: str | Path, *, include_comments: bool = True) -> Path:
    path = types_path(output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_type_definitions(schema, include_comments=include_comments), encoding="utf-8")
    logger.info("Wrote type definitions %s", path)
    return path
