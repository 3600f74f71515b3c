"""CLI for mark-files."""

from dataclasses import replace
from pathlib import Path
from typing import Optional
import logging
import os

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
)

from .config import load_run_config
from .constants import PROGRAM_NAME, PROGRAM_VERSION
from .display import display_restored, display_summary, display_warnings
from .errors import MarkFilesError
from .ops import run
from .utils import shorten_path


app = typer.Typer(help="""\
Record the content hash and dates of every file in a directory, and put
back the dates of files whose content has not changed since the last
recording.""")

console = Console()


class RichProgress:
    """Progress callback drawing one rich progress bar per phase."""

    def __init__(self, progress: Progress, description: str):
        self._progress = progress
        self._description = description
        self._task: Optional[TaskID] = None

    def on_start(self, total: int) -> None:
        self._task = self._progress.add_task(self._description, total=total, path="")

    def on_file_complete(self, path: str) -> None:
        if self._task is not None:
            self._progress.update(self._task, advance=1, path=shorten_path(path))

    def on_file_error(self, path: str, error: str) -> None:
        if self._task is not None:
            self._progress.update(self._task, advance=1, path=shorten_path(path))


def _make_progress() -> Progress:
    return Progress(
        TextColumn("[bold]{task.description:<32}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        TextColumn("[dim]{task.fields[path]}"),
        console=console,
        transient=False,
    )


def setup_logging(verbose: bool = False) -> None:
    """Send log records through rich; warnings only unless verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose, rich_tracebacks=True)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{PROGRAM_NAME} {PROGRAM_VERSION}")
        raise typer.Exit()


@app.command()
def main_command(
    path: Path = typer.Option(..., "-p", "--path", help="Directory to analyze"),
    output: Path = typer.Option(..., "-o", "--output", help="JSON file storing the extracted properties"),
    restore: bool = typer.Option(False, "-r", "--restore", help="Restore the dates of all unmodified files"),
    pause: bool = typer.Option(False, "--pause", help="Wait for Enter before exiting"),
    workers: Optional[int] = typer.Option(None, "-w", "--workers", min=1, help="Maximum number of scan workers"),
    config_file: Optional[Path] = typer.Option(None, "-c", "--config", help="YAML configuration file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Record file hashes and dates, optionally restoring drifted dates.

    Examples:
        mark-files -p ~/photos -o photos.json        # Record
        mark-files -p ~/photos -o photos.json -r     # Restore, then record
    """
    setup_logging(verbose)
    try:
        _run(path, output, restore, workers, config_file)
    finally:
        if pause:
            console.input("\n[dim]Press Enter to exit...[/dim]")


def _run(
    path: Path,
    output: Path,
    restore: bool,
    workers: Optional[int],
    config_file: Optional[Path],
) -> None:
    if not path.is_dir():
        console.print(f"[red]✗ error:[/red] the directory \"{path}\" doesn't exist")
        raise typer.Exit(1)

    config = load_run_config(path, config_file)
    if workers is not None:
        config = replace(config, workers=workers)

    try:
        with _make_progress() as progress:
            report = run(
                path,
                output,
                restore=restore,
                config=config,
                scan_progress=RichProgress(progress, "extract infos for all files"),
                restore_progress=RichProgress(progress, "restore dates to original values"),
            )
    except MarkFilesError as e:
        console.print(f"[red]✗ error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]✗ error:[/red] {type(e).__name__}: {e}")
        if os.environ.get("DEBUG"):
            console.print_exception()
        else:
            console.print("[dim]Run with DEBUG=1 for more details[/dim]")
        raise typer.Exit(1)

    if report.restore is not None:
        display_restored(report.restore.restored, console)
    display_warnings(report, console)
    display_summary(report, console)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
