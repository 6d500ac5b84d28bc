"""
Marker comment parser.

Turns the lines of one source file into Items. A block starts at a line
matching the item pattern and greedily takes the comment lines after it:

    // TODO: handle reconnects          <- marker (type, title)
    // retry with exponential backoff   <- description
    // HIGH                             <- priority
    // IN PROGRESS 2024-01-02 09:00 by alice   <- status annotation

The block ends at the first non-comment line, or at a line that opens another
item; neither is consumed.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from kodo.core.config.models import KodoSettings
from kodo.core.items.models import Item, ItemPriority, StatusHistory
from kodo.core.scanner.comments import (
    ANNOTATION_TIME_FORMAT,
    line_body,
    split_lines,
    strip_html_close,
)
from kodo.core.scanner.patterns import CompiledPatterns


@dataclass
class ScanContext:
    """Everything that stays fixed for the duration of one scan."""

    settings: KodoSettings
    patterns: CompiledPatterns
    user: str
    now: datetime
    next_id: Callable[[], int]
    labels: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        labels = set(self.settings.priority_patterns.labels())
        labels.update(c.name for c in self.settings.kanban_columns)
        self.labels = frozenset(label.strip() for label in labels)


def status_id_for_name(settings: KodoSettings, name: str) -> str:
    """Column ID for an annotation's column name, falling back to snake_case."""
    column = settings.get_column_by_name(name)
    if column is not None:
        return column.id
    return re.sub(r"[^0-9A-Za-z]+", "_", name.strip()).strip("_").lower()


def parse_content(content: str, relative_path: str, ctx: ScanContext) -> list[Item]:
    """
    Parse a file's text into items.

    Args:
        content: Full file text
        relative_path: Path recorded on each item
        ctx: Per-scan context (grammar, user, clock, ID counter)

    Returns:
        Items in file order
    """
    return parse_lines(split_lines(content), relative_path, ctx)


def parse_lines(lines: list[str], relative_path: str, ctx: ScanContext) -> list[Item]:
    first_column = ctx.settings.first_column
    if first_column is None:
        return []

    patterns = ctx.patterns
    items: list[Item] = []
    i = 0
    while i < len(lines):
        match = patterns.item.match(line_body(lines[i]))
        if not match:
            i += 1
            continue

        item_type = match.group(2)
        title = strip_html_close(match.group(3) or "")
        marker_line = i + 1

        descriptions: list[str] = []
        history: list[StatusHistory] = []
        status = first_column.id
        priority = ItemPriority.LOW

        j = i + 1
        while j < len(lines):
            body = line_body(lines[j])
            if patterns.item.match(body):
                break

            if annotation := patterns.status_annotation.match(body):
                try:
                    when = datetime.strptime(" ".join(annotation.group(3).split()),
                                             ANNOTATION_TIME_FORMAT)
                except ValueError:
                    when = None
                if when is not None:
                    # File order wins: the last annotation is the current status
                    status = status_id_for_name(ctx.settings, annotation.group(2))
                    history.append(
                        StatusHistory(status=status, timestamp=when,
                                      user=annotation.group(4).strip())
                    )
            elif prio := patterns.priority.match(body):
                priority = ctx.settings.priority_patterns.resolve(prio.group(2)) or priority
            elif desc := patterns.description.match(body):
                text = strip_html_close(desc.group(2))
                if text and text not in ctx.labels:
                    descriptions.append(text)
            else:
                break
            j += 1

        if not history:
            history = [StatusHistory(status=first_column.id, timestamp=ctx.now, user=ctx.user)]

        item = Item(
            id=ctx.next_id(),
            type=item_type,
            title=title,
            description="\n".join(descriptions),
            file=relative_path,
            line=marker_line,
            status=status,
            priority=priority,
            history=history,
            created_at=ctx.now,
            updated_at=ctx.now,
            current_user=ctx.user,
        )
        done_column = ctx.settings.done_column
        if done_column is not None:
            item.mark_done_from_history(done_column.id)
        items.append(item)

        i = j

    return items
