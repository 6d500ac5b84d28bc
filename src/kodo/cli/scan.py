"""
Kodo CLI - scan and move commands.
"""

import json

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from kodo.cli.context import get_state
from kodo.cli.errors import exit_with_error
from kodo.core.history.exceptions import HistoryError
from kodo.core.items.models import Item, ItemPriority
from kodo.core.scanner.exceptions import ScannerError

console = Console()

PRIORITY_STYLES = {
    ItemPriority.HIGH: "bold red",
    ItemPriority.MEDIUM: "yellow",
    ItemPriority.LOW: "dim",
}


def _items_table(items: list[Item], column_names: dict[str, str]) -> Table:
    table = Table(title=f"{len(items)} item(s)", border_style="cyan")
    table.add_column("ID", style="cyan", justify="right", no_wrap=True)
    table.add_column("Type", style="magenta", no_wrap=True)
    table.add_column("Title")
    table.add_column("Status", no_wrap=True)
    table.add_column("Priority", no_wrap=True)
    table.add_column("Location", style="dim", no_wrap=True)

    for item in items:
        table.add_row(
            str(item.id),
            item.type,
            escape(item.title),
            column_names.get(item.status, item.status),
            f"[{PRIORITY_STYLES[item.priority]}]{item.priority.value}[/]",
            f"{item.file}:{item.line}",
        )
    return table


def scan(
    ctx: typer.Context,
    save: bool = typer.Option(
        False,
        "--save",
        "-s",
        help="Record the result in .kodo/items_history.json",
    ),
    status: str | None = typer.Option(
        None,
        "--status",
        help="Only show items in this column (column ID)",
    ),
    item_type: str | None = typer.Option(
        None,
        "--type",
        "-t",
        help="Only show items with this marker keyword (e.g. FIXME)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Scan the project for TODO/FIXME comments.

    Examples:
        kodo scan
        kodo scan --type FIXME
        kodo scan --save
    """
    state = get_state(ctx)
    service = state.service()

    try:
        items = service.rescan() if save else service.scan()
    except HistoryError as e:
        exit_with_error(e)

    if status is not None:
        items = [item for item in items if item.status == status]
    if item_type is not None:
        items = [item for item in items if item.type == item_type]

    if json_output:
        console.print_json(json.dumps([item.model_dump(mode="json") for item in items]))
        return

    if not items:
        console.print("[dim]No items found.[/dim]")
    else:
        column_names = {c.id: c.name for c in service.settings.kanban_columns}
        console.print(_items_table(items, column_names))

    if save:
        console.print(f"[green]Saved history to[/green] {service.tracker.history_file}")


def move(
    ctx: typer.Context,
    item_id: int = typer.Argument(..., help="Item ID from the latest `kodo scan`"),
    column: str = typer.Argument(..., help="Target column ID (e.g. in_progress, done)"),
    save: bool = typer.Option(
        True,
        "--save/--no-save",
        help="Record the new state in history",
    ),
) -> None:
    """
    Move an item to another kanban column.

    The item's comment block is rewritten with a status annotation such as
    "// DONE 2024-01-02 09:00 by alice".

    Examples:
        kodo move 3 in_progress
        kodo move 3 done --no-save
    """
    state = get_state(ctx)
    service = state.service()

    try:
        service.scan()
        item = service.update_item_status(item_id, column)
        if save:
            service.tracker.save_stats(service.items, service.settings)
    except (ScannerError, HistoryError) as e:
        exit_with_error(e)

    console.print(
        f"[green]Moved[/green] {escape(item.full_title)} [dim]({item.file}:{item.line})[/dim] "
        f"→ [bold]{column}[/bold]"
    )
