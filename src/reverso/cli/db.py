"""Database maintenance commands."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from alembic.util import CommandError
from rich.console import Console
from rich.markup import escape
from sqlalchemy.exc import SQLAlchemyError

from reverso.cli.common import settings_from
from reverso.db import MEMORY_URL, create_store
from reverso.db.migrations import run_migrations

db_app = typer.Typer(help="Manage the content database.")
console = Console()


@db_app.command("migrate")
def migrate(
    ctx: typer.Context,
    alembic_ini: Annotated[Path, typer.Option("--alembic-ini", help="Path to alembic.ini.")] = Path("alembic.ini"),
) -> None:
    """Apply alembic migrations up to head."""
    url = settings_from(ctx).database.url
    if url == MEMORY_URL:
        console.print("[yellow]The in-memory store needs no migrations.[/yellow]")
        return
    if not alembic_ini.is_file():
        console.print(f"[red]{escape(str(alembic_ini))} not found.[/red]")
        raise typer.Exit(1)
    try:
        run_migrations(url, alembic_ini)
    except (CommandError, SQLAlchemyError) as exc:
        console.print(f"[red]Migration failed: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    console.print("[green]Database is at the latest revision.[/green]")


@db_app.command("status")
def status(ctx: typer.Context) -> None:
    """Check that the database answers."""
    url = settings_from(ctx).database.url

    async def _ping() -> bool:
        store = create_store(url)
        try:
            return await store.ping()
        finally:
            await store.dispose()

    if asyncio.run(_ping()):
        console.print("Database: [green]reachable[/green]")
    else:
        console.print("Database: [red]unreachable[/red]")
        raise typer.Exit(1)
