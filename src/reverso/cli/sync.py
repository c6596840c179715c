import asyncio
from typing import Annotated

import typer
from rich.markup import escape

from reverso.cli.common import console, print_scan_summary, print_sync_summary, removal_allowed, settings_from
from reverso.config import ReversoSettings
from reverso.core.document import format_diff
from reverso.core.scan import ScanOutcome, scan_project
from reverso.core.sync import schema_changes, sync_schema
from reverso.db import open_store
from reverso.errors import ReversoError
from reverso.models import SchemaDiff, SyncResult


async def _run(settings: ReversoSettings, delete_removed: bool) -> tuple[ScanOutcome, SyncResult]:
    outcome = await scan_project(settings.scanner)
    print_scan_summary(outcome.result)
    remove = removal_allowed(outcome.result, delete_removed)
    async with open_store(settings.database.url) as store:
        return outcome, await sync_schema(store, outcome.result.project_schema, delete_removed=remove)


async def _preview(settings: ReversoSettings) -> tuple[ScanOutcome, SchemaDiff]:
    outcome = await scan_project(settings.scanner, write=False)
    print_scan_summary(outcome.result)
    async with open_store(settings.database.url) as store:
        return outcome, await schema_changes(store, outcome.result.project_schema)


def sync(
    ctx: typer.Context,
    delete_removed: Annotated[
        bool | None,
        typer.Option(
            "--delete-removed/--keep-removed",
            help="Delete pages, sections and fields (and their content) that are no longer marked up.",
        ),
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Show what would change in the database without writing.")
    ] = False,
) -> None:
    """Scan the source tree and synchronize the schema into the database."""
    settings = settings_from(ctx)
    remove = settings.sync.delete_removed if delete_removed is None else delete_removed
    try:
        if dry_run:
            outcome, changes = asyncio.run(_preview(settings))
        else:
            outcome, result = asyncio.run(_run(settings, remove))
    except ReversoError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    if dry_run:
        console.print(escape(format_diff(changes)))
    else:
        print_sync_summary(result)
    if not outcome.result.success:
        raise typer.Exit(1)
