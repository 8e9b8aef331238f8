"""CLI interface for letterboxd-sync."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from letterboxd_sync.config import load_config, merge_cli_overrides
from letterboxd_sync.errors import SyncError
from letterboxd_sync.pipeline.models import SyncPlan
from letterboxd_sync.pipeline.sync import run_sync

app = typer.Typer(
    name="letterboxd-sync",
    help="Sync your Letterboxd diary into an Obsidian vault.",
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from letterboxd_sync import __version__

        console.print(f"letterboxd-sync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """letterboxd-sync - pull your Letterboxd diary into Obsidian."""
    pass


def _print_plan(plan: SyncPlan, *, dry_run: bool) -> None:
    report = plan.report
    table = Table(title="Planned writes" if dry_run else "Writes")
    table.add_column("Mode")
    table.add_column("Path")
    for request in plan.writes:
        table.add_row(request.mode.value, escape(request.path))
    if plan.writes:
        console.print(table)
    else:
        console.print("[green]Everything is up to date.[/green]")

    console.print(f"  Feed items: {report.items_seen}")
    console.print(f"  New diary entries: {report.diary_entries_added}")
    if report.notes_created or report.notes_updated:
        console.print(f"  Film notes: {report.notes_created} created, {report.notes_updated} updated")
    if report.skipped:
        console.print(f"[yellow]  Skipped {len(report.skipped)} item(s):[/yellow]")
        for item in report.skipped:
            console.print(f"    - {escape(item.reason)}")


@app.command(name="sync")
def sync_cmd(
    username: Annotated[
        Optional[str],
        typer.Option("--username", "-u", help="Letterboxd username (the account must be public)."),
    ] = None,
    vault: Annotated[
        Optional[Path],
        typer.Option(
            "--vault",
            help="Obsidian vault directory.",
            file_okay=False,
            dir_okay=True,
        ),
    ] = None,
    diary_path: Annotated[
        Optional[str],
        typer.Option("--diary", help="Diary note path inside the vault."),
    ] = None,
    movie_notes: Annotated[
        Optional[bool],
        typer.Option(
            "--movie-notes/--no-movie-notes",
            help="Create or update one note per film.",
        ),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .letterboxd-sync.toml file."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be written without writing."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log per-record detail."),
    ] = False,
) -> None:
    """Pull the newest feed entries and merge them into the vault."""
    _configure_logging(verbose)

    config = merge_cli_overrides(
        load_config(config_path),
        username=username,
        vault_directory=str(vault) if vault is not None else None,
        diary_path=diary_path,
        movie_notes=movie_notes,
    )

    if not config.letterboxd.username:
        console.print("[red]Error:[/red] No Letterboxd username configured.")
        console.print("Pass --username or set \\[letterboxd] username in the config file.")
        raise typer.Exit(1)

    if not config.vault_path.is_dir():
        console.print(f"[red]Error:[/red] Vault directory not found: {escape(str(config.vault_path))}")
        raise typer.Exit(1)

    try:
        plan = run_sync(config, dry_run=dry_run)
    except SyncError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    _print_plan(plan, dry_run=dry_run)


if __name__ == "__main__":
    app()
