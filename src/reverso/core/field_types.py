"""Field type registry and per-type configuration.

Each field type belongs to one configuration family. The family is a pydantic model
discriminated by ``type`` so a field only carries the settings that make sense for
it, and each family knows how to report its own inconsistencies via ``problems()``.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TEXT_TYPES = ("text", "textarea", "email", "url", "phone", "wysiwyg", "markdown", "code")
NUMBER_TYPES = ("number", "range")
MEDIA_TYPES = ("image", "file", "gallery", "video", "audio")
CHOICE_TYPES = ("select", "multiselect", "checkboxgroup", "radio", "buttongroup")
DATE_TYPES = ("date", "datetime", "time")
GENERIC_TYPES = (
    "blocks",
    "checkbox",
    "boolean",
    "oembed",
    "relation",
    "taxonomy",
    "link",
    "pagelink",
    "user",
    "color",
    "map",
    "repeater",
    "group",
    "flexible",
    "message",
    "tab",
    "accordion",
)

FIELD_TYPES: tuple[str, ...] = TEXT_TYPES + NUMBER_TYPES + MEDIA_TYPES + CHOICE_TYPES + DATE_TYPES + GENERIC_TYPES


def is_valid_field_type(value: str) -> bool:
    return value in FIELD_TYPES


class FieldOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: str


class _FieldConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", alias_generator=to_camel, populate_by_name=True)

    width: int | None = None
    readonly: bool = False
    hidden: bool = False

    def problems(self) -> list[str]:
        return []


class TextFieldConfig(_FieldConfigBase):
    type: Literal["text", "textarea", "email", "url", "phone", "wysiwyg", "markdown", "code"]
    min_length: int | None = None
    max_length: int | None = None
    rows: int | None = None

    def problems(self) -> list[str]:
        issues: list[str] = []
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            issues.append(f"min length {self.min_length} is greater than max length {self.max_length}")
        if self.rows is not None and self.type != "textarea":
            issues.append(f"rows only applies to textarea fields, not {self.type}")
        return issues


class NumberFieldConfig(_FieldConfigBase):
    type: Literal["number", "range"]
    min: float | None = None
    max: float | None = None
    step: float | None = None

    def problems(self) -> list[str]:
        issues: list[str] = []
        if self.min is not None and self.max is not None and self.min > self.max:
            issues.append(f"min {self.min} is greater than max {self.max}")
        if self.step is not None and self.step <= 0:
            issues.append(f"step must be positive, got {self.step}")
        return issues


class MediaFieldConfig(_FieldConfigBase):
    type: Literal["image", "file", "gallery", "video", "audio"]
    accept: str | None = None
    multiple: bool = False


class ChoiceFieldConfig(_FieldConfigBase):
    type: Literal["select", "multiselect", "checkboxgroup", "radio", "buttongroup"]
    multiple: bool = False

    def problems(self) -> list[str]:
        if self.multiple and self.type == "radio":
            return ["radio fields cannot allow multiple values"]
        return []


class DateFieldConfig(_FieldConfigBase):
    type: Literal["date", "datetime", "time"]
    min: str | None = None
    max: str | None = None


class GenericFieldConfig(_FieldConfigBase):
    type: Literal[
        "blocks",
        "checkbox",
        "boolean",
        "oembed",
        "relation",
        "taxonomy",
        "link",
        "pagelink",
        "user",
        "color",
        "map",
        "repeater",
        "group",
        "flexible",
        "message",
        "tab",
        "accordion",
    ]


FieldConfig = Annotated[
    TextFieldConfig | NumberFieldConfig | MediaFieldConfig | ChoiceFieldConfig | DateFieldConfig | GenericFieldConfig,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Raw modifier coercion
# ---------------------------------------------------------------------------


def coerce_number(raw: str | None) -> int | float | None:
    """Return the numeric value of a modifier, or None when it is not a finite number."""
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def coerce_bool(raw: str | None) -> bool | None:
    """Bare attributes arrive as ``"true"``; anything but true/false/empty is rejected."""
    if raw is None:
        return None
    normalized = raw.strip().lower()
    if normalized in ("", "true"):
        return True
    if normalized == "false":
        return False
    return None


def coerce_width(raw: str | None) -> int | None:
    value = coerce_number(raw)
    if isinstance(value, int) and 1 <= value <= 12:
        return value
    return None


def parse_options(raw: str) -> list[FieldOption]:
    """Parse ``options`` given either as JSON or as ``label:value, label:value``."""
    try:
        decoded = json.loads(raw)
    except ValueError:
        decoded = None

    if isinstance(decoded, list):
        return [_option_from_json(item) for item in decoded]

    options: list[FieldOption] = []
    for chunk in raw.split(","):
        item = chunk.strip()
        if not item:
            continue
        if ":" in item:
            label, value = (part.strip() for part in item.split(":", 1))
            options.append(FieldOption(label=label, value=value))
        else:
            options.append(FieldOption(label=item, value=item))
    return options


def _option_from_json(item: Any) -> FieldOption:
    if isinstance(item, Mapping):
        value = str(item.get("value", item.get("label", "")))
        label = str(item.get("label", value))
        return FieldOption(label=label, value=value)
    return FieldOption(label=str(item), value=str(item))


def build_field_config(field_type: str, attributes: Mapping[str, str]) -> FieldConfig:
    """Build the configuration variant for ``field_type`` from raw modifiers.

    Malformed values are dropped here; the extractor already reported them.
    """
    common: dict[str, Any] = {
        "width": coerce_width(attributes.get("width")),
        "readonly": bool(coerce_bool(attributes.get("readonly"))),
        "hidden": bool(coerce_bool(attributes.get("hidden"))),
    }

    if field_type in TEXT_TYPES:
        min_len = coerce_number(attributes.get("min"))
        max_len = coerce_number(attributes.get("max"))
        rows = coerce_number(attributes.get("rows"))
        return TextFieldConfig(
            type=field_type,  # type: ignore[arg-type]
            min_length=int(min_len) if min_len is not None else None,
            max_length=int(max_len) if max_len is not None else None,
            rows=int(rows) if rows is not None else None,
            **common,
        )
    if field_type in NUMBER_TYPES:
        return NumberFieldConfig(
            type=field_type,  # type: ignore[arg-type]
            min=coerce_number(attributes.get("min")),
            max=coerce_number(attributes.get("max")),
            step=coerce_number(attributes.get("step")),
            **common,
        )
    if field_type in MEDIA_TYPES:
        return MediaFieldConfig(
            type=field_type,  # type: ignore[arg-type]
            accept=attributes.get("accept") or None,
            multiple=bool(coerce_bool(attributes.get("multiple"))),
            **common,
        )
    if field_type in CHOICE_TYPES:
        return ChoiceFieldConfig(
            type=field_type,  # type: ignore[arg-type]
            multiple=bool(coerce_bool(attributes.get("multiple"))) or field_type in ("multiselect", "checkboxgroup"),
            **common,
        )
    if field_type in DATE_TYPES:
        return DateFieldConfig(
            type=field_type,  # type: ignore[arg-type]
            min=attributes.get("min") or None,
            max=attributes.get("max") or None,
            **common,
        )
    return GenericFieldConfig(type=field_type, **common)  # type: ignore[arg-type]
