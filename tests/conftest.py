"""Shared fixtures and helpers for tests."""

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from reverso.db import InMemoryContentStore
from reverso.models import DetectedField

_REPO_ROOT = Path(__file__).parent.parent

FIXED_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def detected(
    path: str,
    file: str = "src/Home.tsx",
    line: int = 1,
    column: int = 0,
    text_content: str | None = None,
    **attributes: str,
) -> DetectedField:
    """Build a ``DetectedField`` the way the extractor would report it."""
    return DetectedField(
        path=path,
        attributes=attributes,
        file=file,
        line=line,
        column=column,
        element_tag="h1",
        text_content=text_content,
    )


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def src_tree(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper that writes ``relative`` under ``tmp_path/src``."""
    root = tmp_path / "src"
    root.mkdir()

    def _write(relative: str, content: str) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
