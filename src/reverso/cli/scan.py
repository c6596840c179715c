import asyncio
from typing import Annotated

import typer
from rich.markup import escape

from reverso.cli.common import console, print_scan_summary, print_sync_summary, removal_allowed, settings_from
from reverso.config import ReversoSettings
from reverso.core.diff import diff_schemas
from reverso.core.document import format_diff, read_schema
from reverso.core.scan import ScanOutcome, run_scan, scan_project
from reverso.core.sync import sync_schema
from reverso.core.watch import WatchEvent, WatchSession
from reverso.db import open_store
from reverso.errors import ReversoError
from reverso.watcher.watchfiles_adapter import WatchfilesWatcher


def _report(outcome: ScanOutcome) -> None:
    print_scan_summary(outcome.result)
    console.print(escape(format_diff(outcome.diff)))
    if outcome.output_path is not None:
        console.print(f"[green]Wrote[/green] {escape(str(outcome.output_path))}")
    if outcome.types_path is not None:
        console.print(f"[green]Wrote[/green] {escape(str(outcome.types_path))}")


def _print_event(event: WatchEvent) -> None:
    if event.type == "change":
        console.print(f"[dim]Changed:[/dim] {escape(', '.join(event.paths))}")
    elif event.type == "start":
        console.print("[dim]Scanning...[/dim]")
    elif event.type == "complete":
        _report(event.result)
    else:
        console.print(f"[red]Scan failed:[/red] {escape(str(event.error))}")


async def _watch(settings: ReversoSettings, with_sync: bool) -> None:
    async with open_store(settings.database.url) as store:

        async def _scan_once() -> ScanOutcome:
            outcome = await scan_project(settings.scanner)
            if with_sync:
                remove = removal_allowed(outcome.result, settings.sync.delete_removed)
                print_sync_summary(await sync_schema(store, outcome.result.project_schema, delete_removed=remove))
            return outcome

        session = WatchSession(_scan_once, debounce_ms=settings.scanner.watch_debounce_ms)
        watcher = WatchfilesWatcher(
            settings.scanner.src_dir,
            session.notify,
            include=settings.scanner.include,
            exclude=settings.scanner.exclude,
        )
        await session.start(watcher)
        console.print(f"Watching {escape(settings.scanner.src_dir)} (Ctrl+C to stop)")
        try:
            async for event in session.events():
                _print_event(event)
        finally:
            await session.stop()


async def _scan_and_sync(settings: ReversoSettings) -> None:
    outcome = await scan_project(settings.scanner)
    _report(outcome)
    remove = removal_allowed(outcome.result, settings.sync.delete_removed)
    async with open_store(settings.database.url) as store:
        result = await sync_schema(store, outcome.result.project_schema, delete_removed=remove)
    print_sync_summary(result)
    if not outcome.result.success:
        raise typer.Exit(1)


def scan(
    ctx: typer.Context,
    watch: Annotated[bool, typer.Option("--watch", "-w", help="Rescan when source files change.")] = False,
    sync: Annotated[bool, typer.Option("--sync", help="Sync the schema into the database after each scan.")] = False,
) -> None:
    """Scan the source tree and write the schema document."""
    settings = settings_from(ctx)
    try:
        if watch:
            try:
                asyncio.run(_watch(settings, sync))
            except KeyboardInterrupt:
                console.print("Stopped watching.")
            return
        if sync:
            asyncio.run(_scan_and_sync(settings))
            return
        outcome = asyncio.run(scan_project(settings.scanner))
    except ReversoError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    _report(outcome)
    if not outcome.result.success:
        raise typer.Exit(1)


def diff(ctx: typer.Context) -> None:
    """Show what a scan would change in the schema document, without writing it."""
    settings = settings_from(ctx)
    try:
        result = asyncio.run(run_scan(settings.scanner))
    except ReversoError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    previous = read_schema(settings.scanner.output_dir)
    print_scan_summary(result)
    console.print(escape(format_diff(diff_schemas(previous, result.project_schema))))
