"""
Kodo CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console

from kodo import __version__
from kodo.cli import history, scan
from kodo.cli.context import build_state
from kodo.core.config.env import load_project_env

app = typer.Typer(
    name="kodo",
    help="Kanban board for the TODO and FIXME comments in your code",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for kodo commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project root to scan (default: current directory)",
        file_okay=False,
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config directory, relative to the project (default: .kodo or $KODO_CONFIG_DIR)",
    ),
) -> None:
    """
    Kodo - track TODO/FIXME comments as a kanban board.

    Items are found by scanning source comments. Moving an item writes a
    status annotation back into the comment, so the board lives in your code.

    Quick Start:
        kodo scan                    # List items
        kodo move 3 in_progress      # Start working on item 3
        kodo scan --save             # Record a snapshot for this commit
        kodo history changes         # What changed since the last commit
    """
    setup_logging(debug)
    # Project .env may set KODO_* variables; existing env always wins
    load_project_env((project or Path.cwd()).resolve())
    ctx.obj = build_state(project, config, debug)


app.command(name="scan")(scan.scan)
app.command(name="move")(scan.move)
app.add_typer(history.app, name="history")


@app.command()
def version() -> None:
    """Show kodo version and exit."""
    console.print(f"kodo version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
