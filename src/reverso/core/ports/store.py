from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from reverso.constants import DEFAULT_LOCALE


@dataclass(frozen=True)
class PageRecord:
    id: str
    slug: str
    name: str
    source_files: list[str]
    field_count: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SectionRecord:
    id: str
    page_id: str
    slug: str
    name: str
    is_repeater: bool
    repeater_config: dict[str, Any] | None
    sort_order: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class FieldRecord:
    id: str
    section_id: str
    path: str
    type: str
    label: str
    placeholder: str | None
    required: bool
    validation: str | None
    options: list[dict[str, Any]] | None
    condition: str | None
    config: dict[str, Any]
    default_value: str | None
    help: str | None
    element_tag: str | None
    source_files: list[str]
    source_line: int
    source_column: int
    sort_order: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ContentRecord:
    id: str
    field_id: str
    locale: str
    value: Any
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ContentHistoryRecord:
    id: str
    content_id: str
    value: Any
    changed_by: str | None
    changed_at: datetime


class StoreTransaction(Protocol):
    """Structural reads and writes bound to one store transaction.

    ``values`` mappings carry record attributes without ``id`` and timestamps; the
    store assigns those.
    """

    async def list_pages(self) -> list[PageRecord]: ...

    async def list_sections(self) -> list[SectionRecord]: ...

    async def list_fields(self) -> list[FieldRecord]: ...

    async def insert_page(self, values: dict[str, Any]) -> PageRecord: ...

    async def update_page(self, page_id: str, values: dict[str, Any]) -> None: ...

    async def delete_page(self, page_id: str) -> None: ...

    async def insert_section(self, values: dict[str, Any]) -> SectionRecord: ...

    async def update_section(self, section_id: str, values: dict[str, Any]) -> None: ...

    async def delete_section(self, section_id: str) -> None: ...

    async def insert_field(self, values: dict[str, Any]) -> FieldRecord: ...

    async def update_field(self, field_id: str, values: dict[str, Any]) -> None: ...

    async def delete_field(self, field_id: str) -> None: ...


class ContentStore(Protocol):
    def transaction(self) -> AbstractAsyncContextManager[StoreTransaction]: ...

    async def ensure_ready(self) -> None: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...

    async def list_pages(self) -> list[PageRecord]: ...

    async def list_sections(self) -> list[SectionRecord]: ...

    async def list_fields(self) -> list[FieldRecord]: ...

    async def set_content(
        self,
        path: str,
        value: Any,
        locale: str = DEFAULT_LOCALE,
        changed_by: str | None = None,
    ) -> ContentRecord: ...

    async def get_content(self, path: str, locale: str = DEFAULT_LOCALE) -> ContentRecord | None: ...

    async def list_content_history(self, path: str, locale: str = DEFAULT_LOCALE) -> list[ContentHistoryRecord]: ...
