"""Scan a source tree: discover files, extract markers concurrently, assemble the schema."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from reverso.config import ScannerSettings
from reverso.core.assemble import assemble_schema
from reverso.core.diff import diff_schemas
from reverso.core.discovery import discover_files
from reverso.core.document import read_schema, write_schema, write_types
from reverso.core.extract import extract_markers_from_file
from reverso.errors import ParseError
from reverso.models import FileScanResult, ScanIssue, ScanResult, SchemaDiff, SchemaMeta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanOutcome:
    result: ScanResult
    diff: SchemaDiff
    output_path: Path | None = None
    types_path: Path | None = None


async def scan_file(path: Path, root: Path, *, include_text_content: bool = True) -> FileScanResult:
    """Extract one file in a worker thread; read and parse failures become file errors."""
    display = path.relative_to(root).as_posix() if path.is_relative_to(root) else path.as_posix()
    try:
        return await asyncio.to_thread(
            extract_markers_from_file,
            path,
            display_path=display,
            include_text_content=include_text_content,
        )
    except ParseError as exc:
        kind = "io" if isinstance(exc.cause, OSError) else "parse"
        logger.warning("Skipping %s: %s", display, exc.cause)
        return FileScanResult(file=display, errors=[ScanIssue(kind=kind, message=str(exc.cause), file=display)])


async def run_scan(settings: ScannerSettings, *, generated_at: datetime | None = None) -> ScanResult:
    """Scan ``settings.src_dir`` and assemble the project schema.

    Per-file problems are collected on the result next to a usable partial schema.

    Raises:
        SchemaConflictError: when ``settings.conflict_policy`` is ``"error"`` and a path
            is declared inconsistently.
    """
    started = time.perf_counter()
    root = Path(settings.src_dir)
    files = discover_files(root, settings.include, settings.exclude)
    semaphore = asyncio.Semaphore(settings.workers)

    async def _bounded(path: Path) -> FileScanResult:
        async with semaphore:
            return await scan_file(path, root, include_text_content=settings.include_text_content)

    file_results = sorted(await asyncio.gather(*(_bounded(path) for path in files)), key=lambda r: r.file)
    detected = [field for result in file_results for field in result.fields]

    meta = SchemaMeta(
        src_dir=settings.src_dir,
        files_scanned=len(file_results),
        files_with_markers=len({field.file for field in detected}),
        scan_duration=round((time.perf_counter() - started) * 1000, 3),
    )
    schema, assembly_warnings = assemble_schema(
        detected,
        generated_at=generated_at,
        meta=meta,
        field_order=settings.field_order,
        conflict_policy=settings.conflict_policy,
    )

    warnings = [issue for result in file_results for issue in result.warnings] + assembly_warnings
    errors = [issue for result in file_results for issue in result.errors]
    logger.info(
        "Scanned %d file(s): %d marker(s), %d page(s), %d field(s) in %.1fms",
        meta.files_scanned,
        len(detected),
        schema.page_count,
        schema.total_fields,
        meta.scan_duration,
    )
    return ScanResult(project_schema=schema, files=file_results, warnings=warnings, errors=errors)


async def scan_project(settings: ScannerSettings, *, write: bool = True) -> ScanOutcome:
    """Scan, compare against the previous schema document and optionally replace it."""
    previous = read_schema(settings.output_dir)
    result = await run_scan(settings)
    diff = diff_schemas(previous, result.project_schema)
    if not write:
        return ScanOutcome(result=result, diff=diff)
    output_path = write_schema(result.project_schema, settings.output_dir)
    types_path = write_types(result.project_schema, settings.output_dir) if settings.generate_types else None
    return ScanOutcome(result=result, diff=diff, output_path=output_path, types_path=types_path)
