"""Tests for scanning a source tree end to end."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from reverso.config import ScannerSettings
from reverso.core.document import read_schema, schema_path
from reverso.core.extract import extract_markers_from_file
from reverso.core.scan import run_scan, scan_project
from reverso.errors import ParseError, SchemaConflictError

HOME = """\
export default function Home() {
  return (
    <main>
      <h1 data-reverso="home.hero.title">Welcome</h1>
      <p data-reverso="global.footer.copyright">(c) Acme</p>
    </main>
  );
}
"""

ABOUT = """\
<section>
  <h2 data-reverso="about.team.heading" data-reverso-type="text">Our team</h2>
  <small data-reverso="global.footer.copyright">(c) Acme</small>
</section>
"""


@pytest.fixture
def settings(tmp_path: Path) -> ScannerSettings:
    return ScannerSettings(src_dir=str(tmp_path / "src"), output_dir=str(tmp_path / ".reverso"), workers=2)


@pytest.mark.asyncio
async def test_run_scan_assembles_all_files(
    settings: ScannerSettings, src_tree: Callable[[str, str], Path]
) -> None:
    src_tree("pages/Home.tsx", HOME)
    src_tree("about.html", ABOUT)
    src_tree("pages/Home.test.tsx", HOME.replace("home.hero", "test.only"))

    result = await run_scan(settings)

    assert result.success
    schema = result.project_schema
    assert [page.slug for page in schema.pages] == ["about", "global", "home"]
    assert schema.total_fields == 3
    assert schema.meta.files_scanned == 2
    assert schema.meta.files_with_markers == 2
    assert [file.file for file in result.files] == ["about.html", "pages/Home.tsx"]
    (copyright,) = [f for f in schema.iter_fields() if f.path == "global.footer.copyright"]
    assert copyright.source_files == ["about.html", "pages/Home.tsx"]


@pytest.mark.asyncio
async def test_unreadable_file_is_reported_not_fatal(
    settings: ScannerSettings, src_tree: Callable[[str, str], Path]
) -> None:
    src_tree("pages/Home.tsx", HOME)
    src_tree("about.html", ABOUT)

    def _flaky(path: Path, *args, **kwargs):
        if path.name == "about.html":
            raise ParseError("about.html", PermissionError("denied"))
        return extract_markers_from_file(path, *args, **kwargs)

    with patch("reverso.core.scan.extract_markers_from_file", side_effect=_flaky):
        result = await run_scan(settings)

    assert not result.success
    (error,) = result.errors
    assert error.kind == "io"
    assert error.file == "about.html"
    assert result.project_schema.total_fields == 2


@pytest.mark.asyncio
async def test_conflict_policy_error_propagates(
    settings: ScannerSettings, src_tree: Callable[[str, str], Path]
) -> None:
    src_tree("A.tsx", '<h1 data-reverso="home.hero.title" data-reverso-type="text" />;\n')
    src_tree("B.tsx", '<h1 data-reverso="home.hero.title" data-reverso-type="textarea" />;\n')

    with pytest.raises(SchemaConflictError):
        await run_scan(settings.model_copy(update={"conflict_policy": "error"}))


@pytest.mark.asyncio
async def test_scan_project_writes_and_diffs(settings: ScannerSettings, src_tree: Callable[[str, str], Path]) -> None:
    src_tree("pages/Home.tsx", HOME)

    first = await scan_project(settings)
    assert first.output_path == schema_path(settings.output_dir)
    assert first.diff.fields_added == ["global.footer.copyright", "home.hero.title"]
    assert read_schema(settings.output_dir) is not None

    second = await scan_project(settings)
    assert not second.diff.has_changes

    src_tree("about.html", ABOUT)
    third = await scan_project(settings, write=False)
    assert third.output_path is None
    assert third.diff.fields_added == ["about.team.heading"]
    assert read_schema(settings.output_dir).total_fields == 2


@pytest.mark.asyncio
async def test_missing_source_directory_gives_empty_schema(settings: ScannerSettings) -> None:
    result = await run_scan(settings)
    assert result.project_schema.pages == []
    assert result.project_schema.page_count == 0
