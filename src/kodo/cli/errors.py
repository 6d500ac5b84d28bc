"""
Error display and exit codes for the kodo CLI.
"""

from enum import IntEnum
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from kodo.core.history.exceptions import HistoryError, InsufficientHistoryError
from kodo.core.scanner.exceptions import (
    InvalidLineError,
    ItemNotFoundError,
    KanbanColumnNotFoundError,
    ScannerError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for kodo."""

    SUCCESS = 0
    GENERAL_ERROR = 1


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print an error message with optional guidance.

    Example:
        >>> print_error("item 7 not found", solution="kodo scan")
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def exit_with_error(error: ScannerError | HistoryError) -> NoReturn:
    """Print a kodo error with a matching hint and exit with GENERAL_ERROR."""
    solution = None
    if isinstance(error, (ItemNotFoundError, InvalidLineError)):
        solution = "kodo scan  # IDs and line numbers change between scans"
    elif isinstance(error, KanbanColumnNotFoundError):
        solution = "check kanban_columns in .kodo/settings.json"
    elif isinstance(error, InsufficientHistoryError):
        solution = "commit, then run: kodo scan --save"

    print_error(escape(str(error)), solution=solution)
    raise typer.Exit(ExitCode.GENERAL_ERROR)
