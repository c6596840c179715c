import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from reverso.cli.db import db_app
from reverso.cli.scan import diff, scan
from reverso.cli.sync import sync
from reverso.config import load_settings
from reverso.errors import ConfigError

app = typer.Typer(
    name="reverso",
    help="Reverso CLI: compile content markers into a schema and sync it to the database.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(db_app, name="db")
app.command("scan")(scan)
app.command("diff")(diff)
app.command("sync")(sync)


def configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("reverso")
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Annotated[Path | None, typer.Option("--config", "-c", help="Path to reverso.toml.")] = None,
    src_dir: Annotated[str | None, typer.Option("--src-dir", help="Override the source directory.")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
) -> None:
    configure_logging(verbose)
    try:
        settings = load_settings(config)
    except ConfigError as exc:
        Console(stderr=True).print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    if src_dir is not None:
        settings.scanner.src_dir = src_dir
    ctx.obj = settings


def main() -> None:
    app()
