"""Helpers shared by the CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from reverso.config import ReversoSettings
from reverso.models import ScanIssue, ScanResult, SyncResult

console = Console()


def settings_from(ctx: typer.Context) -> ReversoSettings:
    root = ctx.find_root()
    if isinstance(root.obj, ReversoSettings):
        return root.obj
    return ReversoSettings()


def print_issues(issues: list[ScanIssue], style: str) -> None:
    for issue in issues:
        console.print(f"[{style}]{issue.kind}[/{style}] {escape(issue.location)}: {escape(issue.message)}")


def print_scan_summary(result: ScanResult) -> None:
    schema = result.project_schema
    console.print(
        f"[green]Scanned[/green] {schema.meta.files_scanned} file(s), "
        f"{schema.meta.files_with_markers} with markers: "
        f"{schema.page_count} page(s), {schema.total_fields} field(s)"
    )
    print_issues(result.warnings, "yellow")
    print_issues(result.errors, "red")


def print_sync_summary(result: SyncResult) -> None:
    for entity, counts in (("Pages", result.pages), ("Sections", result.sections), ("Fields", result.fields)):
        console.print(
            f"{entity}: [green]{counts.created} created[/green], "
            f"[cyan]{counts.updated} updated[/cyan], [red]{counts.deleted} deleted[/red]"
        )
    console.print(f"Synced in {result.duration:.1f}ms")


def removal_allowed(result: ScanResult, delete_removed: bool) -> bool:
    """Only let a clean scan delete rows; files that failed to read still own theirs."""
    if delete_removed and not result.success:
        console.print("[yellow]Scan reported errors; keeping pages, sections and fields that were not seen.[/yellow]")
        return False
    return delete_removed
