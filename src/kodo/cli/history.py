"""
Kodo CLI - history commands.

Query the per-commit snapshots recorded by `kodo scan --save`.
"""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from kodo.cli.context import get_state
from kodo.cli.errors import exit_with_error
from kodo.core.history.exceptions import HistoryError
from kodo.core.history.models import TaskItem
from kodo.core.history.tracker import DEFAULT_MAX_AGE_DAYS

console = Console()
app = typer.Typer(help="Inspect item history across commits")

TIME_FORMAT = "%Y-%m-%d %H:%M"


def _no_history() -> None:
    console.print("[yellow]No history recorded yet.[/yellow] Run [cyan]kodo scan --save[/cyan].")


def _describe(item: TaskItem) -> str:
    return f"{item.type}: {escape(item.title)} [dim]({item.file}:{item.line})[/dim]"


@app.command()
def changes(ctx: typer.Context) -> None:
    """
    Show items added, removed or moved since the previous snapshot.

    Examples:
        kodo history changes
    """
    tracker = get_state(ctx).tracker()
    try:
        result = tracker.get_recent_item_changes()
    except HistoryError as e:
        exit_with_error(e)

    summary = result.summary
    console.print(
        f"[green]+{summary['added']} added[/green]  "
        f"[red]-{summary['removed']} removed[/red]  "
        f"[yellow]~{summary['status_changed']} moved[/yellow]"
    )
    for item in result.added:
        console.print(f"  [green]+[/green] {_describe(item)}")
    for item in result.removed:
        console.print(f"  [red]-[/red] {_describe(item)}")
    for change in result.status_changed:
        console.print(
            f"  [yellow]~[/yellow] {_describe(change.item)} "
            f"{change.old_status} → {change.new_status}"
        )


@app.command()
def trends(ctx: typer.Context) -> None:
    """
    Show per-column counts and completion rate for each snapshot.

    Examples:
        kodo history trends
    """
    state = get_state(ctx)
    settings = state.settings()
    result = state.tracker().get_item_trends(settings)
    if not result.timeline:
        _no_history()
        return

    table = Table(title="Item trends", border_style="cyan")
    table.add_column("When", no_wrap=True)
    table.add_column("Commit", style="cyan", no_wrap=True)
    table.add_column("Branch", style="magenta")
    for column in settings.kanban_columns:
        table.add_column(column.name, justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Done %", justify="right")

    for entry, completion in zip(result.timeline, result.completion_rate):
        table.add_row(
            entry.timestamp.strftime(TIME_FORMAT),
            entry.commit,
            entry.branch,
            *(str(entry.counts.get(column.name, 0)) for column in settings.kanban_columns),
            str(entry.total),
            f"{completion.rate:.1f}",
        )
    console.print(table)


@app.command()
def compare(ctx: typer.Context) -> None:
    """
    Compare column counts with the previous commit's snapshot.

    Examples:
        kodo history compare
    """
    state = get_state(ctx)
    try:
        result = state.tracker().compare_with_previous_commit(state.settings())
    except HistoryError as e:
        exit_with_error(e)

    console.print(
        f"[dim]{result.previous.commit} ({result.previous.branch})[/dim] → "
        f"[bold]{result.current.commit}[/bold] ({result.current.branch})"
    )
    table = Table(border_style="cyan")
    table.add_column("Column")
    table.add_column("Change", justify="right")
    for name, delta in result.changes.items():
        style = "green" if delta > 0 else "red" if delta < 0 else "dim"
        table.add_row(name, f"[{style}]{delta:+d}[/]")
    console.print(table)


@app.command()
def cleanup(
    ctx: typer.Context,
    max_age_days: int = typer.Option(
        DEFAULT_MAX_AGE_DAYS,
        "--max-age-days",
        min=0,
        help="Drop snapshots older than this many days",
    ),
) -> None:
    """
    Remove old snapshots from the history file.

    Examples:
        kodo history cleanup
        kodo history cleanup --max-age-days 7
    """
    try:
        removed = get_state(ctx).tracker().cleanup_old_stats(max_age_days)
    except HistoryError as e:
        exit_with_error(e)
    console.print(f"Removed {removed} snapshot(s) older than {max_age_days} day(s).")


@app.command()
def stats(ctx: typer.Context) -> None:
    """
    Summarize the latest saved scan.

    Examples:
        kodo history stats
    """
    state = get_state(ctx)
    settings = state.settings()
    result = state.tracker().get_project_stats(settings)
    if result is None:
        _no_history()
        return

    console.print(f"[bold]{result.project_path}[/bold]")
    console.print(f"[dim]Branch:[/dim] {result.git_branch} [dim]@[/dim] {result.git_commit_short}")
    console.print(f"[dim]Last scan:[/dim] {result.last_scan.strftime(TIME_FORMAT)}")
    console.print(f"[dim]Snapshots:[/dim] {result.history_count}")
    console.print(
        f"[dim]Items:[/dim] {result.total_items}  "
        f"[dim]Progress:[/dim] {result.progress_percent:.1f}%"
    )

    names = {c.id: c.name for c in settings.kanban_columns}
    table = Table(border_style="cyan")
    table.add_column("Column")
    table.add_column("Items", justify="right")
    for status, count in result.items_by_status.items():
        table.add_row(names.get(status, status), str(count))
    console.print(table)


@app.command()
def files(ctx: typer.Context) -> None:
    """
    Show saved items grouped by file.

    Examples:
        kodo history files
    """
    state = get_state(ctx)
    settings = state.settings()
    result = state.tracker().get_items_by_file(settings)
    if result is None:
        _no_history()
        return

    table = Table(title=f"{result.total_files} file(s)", border_style="cyan")
    table.add_column("File")
    table.add_column("Items", justify="right")
    table.add_column("High", justify="right", style="red")
    for column in settings.kanban_columns:
        table.add_column(column.name, justify="right")

    for path, group in sorted(result.files.items()):
        table.add_row(
            path,
            str(group.total),
            str(group.high_priority),
            *(str(group.status_counts.get(column.id, 0)) for column in settings.kanban_columns),
        )
    console.print(table)
