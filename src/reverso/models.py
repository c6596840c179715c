from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reverso.constants import SCHEMA_VERSION
from reverso.core.field_types import FieldConfig, FieldOption


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _SchemaModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class DetectedField(_CamelModel):
    path: str
    attributes: dict[str, str] = Field(default_factory=dict)
    file: str
    line: int
    column: int
    element_tag: str | None = None
    text_content: str | None = None

    @property
    def position(self) -> tuple[str, int, int]:
        return (self.file, self.line, self.column)


class ScanIssue(_CamelModel):
    kind: Literal["parse", "validation", "io"]
    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None
    path: str | None = None

    @property
    def location(self) -> str:
        if self.file is None:
            return "<scan>"
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}:{self.column or 0}"


class FileScanResult(_CamelModel):
    file: str
    fields: list[DetectedField] = Field(default_factory=list)
    warnings: list[ScanIssue] = Field(default_factory=list)
    errors: list[ScanIssue] = Field(default_factory=list)
    duration: float = 0.0


class ParsedPath(_SchemaModel):
    page_slug: str
    section_slug: str
    repeater_segments: tuple[str, ...] = ()
    field_segments: tuple[str, ...] = ()
    is_repeater: bool = False


# ---------------------------------------------------------------------------
# Schema document
# ---------------------------------------------------------------------------


class FieldSchema(_SchemaModel):
    path: str
    type: str
    label: str
    placeholder: str | None = None
    required: bool = False
    validation: str | None = None
    options: list[FieldOption] | None = None
    condition: str | None = None
    config: FieldConfig
    default_value: str | None = None
    help: str | None = None
    element_tag: str | None = None
    source_files: list[str] = Field(default_factory=list)
    source_line: int = 0
    source_column: int = 0
    sort_order: int = 0


class RepeaterConfig(_SchemaModel):
    min: int | None = None
    max: int | None = None
    item_label: str | None = None


class SectionSchema(_SchemaModel):
    slug: str
    name: str
    is_repeater: bool = False
    repeater_config: RepeaterConfig | None = None
    sort_order: int = 0
    fields: list[FieldSchema] = Field(default_factory=list)


class PageSchema(_SchemaModel):
    slug: str
    name: str
    source_files: list[str] = Field(default_factory=list)
    field_count: int = 0
    sections: list[SectionSchema] = Field(default_factory=list)


class SchemaMeta(_SchemaModel):
    src_dir: str = ""
    files_scanned: int = 0
    files_with_markers: int = 0
    scan_duration: float = 0.0


class ProjectSchema(_SchemaModel):
    version: str = SCHEMA_VERSION
    generated_at: datetime
    pages: list[PageSchema] = Field(default_factory=list)
    page_count: int = 0
    total_fields: int = 0
    meta: SchemaMeta = Field(default_factory=SchemaMeta)

    def iter_fields(self) -> list[FieldSchema]:
        return [field for page in self.pages for section in page.sections for field in section.fields]


class ScanResult(_CamelModel):
    project_schema: ProjectSchema
    files: list[FileScanResult] = Field(default_factory=list)
    warnings: list[ScanIssue] = Field(default_factory=list)
    errors: list[ScanIssue] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Diff and sync reports
# ---------------------------------------------------------------------------


class EntityChange(_CamelModel):
    key: str
    changes: list[str]


class SchemaDiff(_CamelModel):
    pages_added: list[str] = Field(default_factory=list)
    pages_removed: list[str] = Field(default_factory=list)
    pages_changed: list[EntityChange] = Field(default_factory=list)
    sections_added: list[str] = Field(default_factory=list)
    sections_removed: list[str] = Field(default_factory=list)
    sections_changed: list[EntityChange] = Field(default_factory=list)
    fields_added: list[str] = Field(default_factory=list)
    fields_removed: list[str] = Field(default_factory=list)
    fields_changed: list[EntityChange] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return any(bool(value) for value in self.model_dump().values())


class EntitySyncCounts(_CamelModel):
    created: int = 0
    updated: int = 0
    deleted: int = 0


class SyncResult(_CamelModel):
    pages: EntitySyncCounts = Field(default_factory=EntitySyncCounts)
    sections: EntitySyncCounts = Field(default_factory=EntitySyncCounts)
    fields: EntitySyncCounts = Field(default_factory=EntitySyncCounts)
    duration: float = 0.0

    @property
    def total_changes(self) -> int:
        return sum(
            counts.created + counts.updated + counts.deleted for counts in (self.pages, self.sections, self.fields)
        )
