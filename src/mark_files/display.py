"""Display logic for run results."""

from typing import List

from rich.console import Console
from rich.table import Table

from .core import RestoreAction, RunReport
from .utils import format_timestamp


def _format_change(restored, observed) -> List[str]:
    if restored is None:
        return ["", ""]
    return [format_timestamp(observed), format_timestamp(restored)]


def display_restored(actions: List[RestoreAction], console: Console) -> None:
    """Table of files whose dates were put back."""
    if not actions:
        return

    table = Table(title="Restored Dates")
    table.add_column("File", style="bold cyan")
    table.add_column("CTime", justify="center")
    table.add_column("Restored CTime", justify="center", style="green")
    table.add_column("MTime", justify="center")
    table.add_column("Restored MTime", justify="center", style="green")

    for action in actions:
        table.add_row(
            action.path,
            *_format_change(action.restore_ctime, action.observed_ctime),
            *_format_change(action.restore_mtime, action.observed_mtime),
        )

    console.print()
    console.print(table)


def display_warnings(report: RunReport, console: Console) -> None:
    """Table of files skipped during the scan or not restored."""
    if not report.has_warnings:
        return

    table = Table(title="Warnings")
    table.add_column("File", style="cyan")
    table.add_column("Stage")
    table.add_column("Error", style="yellow")

    for failure in report.scan_failures:
        table.add_row(failure.path, "scan", failure.error)
    if report.restore:
        for failure in report.restore.failures:
            table.add_row(failure.path, "restore", failure.error)

    console.print()
    console.print(table)


def display_summary(report: RunReport, console: Console) -> None:
    """One-line summary of the run."""
    console.print()
    if report.changes is not None:
        console.print(f"[bold]Files:[/bold] {report.changes.summary()}")

    restored = len(report.restore.restored) if report.restore else 0
    parts = [f"[green]✓[/green] {report.scanned} files recorded in {report.output}"]
    if report.restore is not None:
        parts.append(f"{restored} restored")
    if report.has_warnings:
        warnings = len(report.scan_failures)
        if report.restore:
            warnings += len(report.restore.failures)
        parts.append(f"[yellow]⚠ {warnings} warnings[/yellow]")
    console.print(", ".join(parts))
