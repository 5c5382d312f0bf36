"""
Human-readable output formatting.

Centralizes all CLI output formatting so CLI commands stay thin.
"""
from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from ..rewrite import RewriteResult
from .facade import PointerResult

_console = Console()
_err_console = Console(stderr=True)


def print_rewrite_summary(result: RewriteResult, verbose: bool = False) -> None:
    """
    Print the outcome of a tree rewrite.

    Shows the rewritten root tree id and conversion counters.

    Args:
        result: Rewrite result to display
        verbose: Also show failures and tree counts
    """
    stats = result.stats
    _console.print(f"[bold]Tree:[/] {result.new_tree_id.decode('ascii')}", highlight=False)
    if not result.changed:
        _console.print("[dim]No matching files; tree unchanged[/]")

    table = Table(title="Conversion")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="yellow", justify="right")
    table.add_row("Converted files", str(stats.converted))
    table.add_row("Stored bytes", _format_bytes(stats.bytes_stored))
    table.add_row("Attributes updated", str(stats.attributes_updated))
    if verbose:
        table.add_row("Store failures", str(stats.failed))
        table.add_row("Trees visited", str(result.trees_visited))
        table.add_row("Trees changed", str(result.trees_changed))
    _console.print(table)


def print_pointer(result: PointerResult) -> None:
    """Print a pointer document exactly as it would be committed."""
    typer.echo(result.pointer, nl=False)


def print_error(exc: BaseException) -> None:
    _err_console.print(f"[bold red]Error:[/] {type(exc).__name__}: {exc}", highlight=False, markup=True)


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Returns:
        Formatted string (e.g., "1.5 MB", "42 B")
    """
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024:
            return f"{size_bytes} B" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"
