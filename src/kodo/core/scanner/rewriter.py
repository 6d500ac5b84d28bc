"""
Status rewriter.

Moves an item to another kanban column by editing its comment block in place:
existing status lines are stripped and, for annotation-only columns, a fresh
annotation is appended at the end of the block.

    // TODO: handle reconnects                    // TODO: handle reconnects
    // retry with backoff              ==>        // retry with backoff
    // IN PROGRESS 2024-01-02 09:00 by alice      // DONE 2024-01-05 17:30 by bob

Only lines inside [marker, block end] are touched, and the file is replaced
atomically so a failed write never leaves a truncated source file behind.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from kodo.core.config.models import KanbanColumn, KodoSettings
from kodo.core.items.models import Item
from kodo.core.scanner.comments import (
    comment_prefix_for,
    format_status_annotation,
    is_comment_line,
    line_body,
    line_ending,
    split_lines,
    strip_html_close,
)
from kodo.core.scanner.exceptions import (
    FileReadError,
    FileWriteError,
    InvalidLineError,
    KanbanColumnNotFoundError,
)
from kodo.core.scanner.patterns import CompiledPatterns, compile_patterns
from kodo.utils.git import get_current_user

logger = logging.getLogger(__name__)


class StatusRewriter:
    """
    Persists status transitions as comments in source files.

    Example:
        >>> rewriter = StatusRewriter(Path.cwd(), load_settings)
        >>> rewriter.apply(item, "done")
    """

    def __init__(
        self,
        project_dir: Path,
        settings_provider: Callable[[], KodoSettings],
        user_provider: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            project_dir: Root that item paths are relative to
            settings_provider: Returns the live settings
            user_provider: Returns the user to attribute changes to
            clock: Returns the current local time (annotations carry wall-clock time)
        """
        self.project_dir = project_dir
        self._settings_provider = settings_provider
        self._user_provider = user_provider or (lambda: get_current_user(project_dir))
        self._clock = clock or datetime.now

    def apply(self, item: Item, target_column_id: str) -> int:
        """
        Move `item` to `target_column_id` by rewriting its source file.

        On success the item's status and history are updated in memory too.

        Returns:
            Change in the file's line count; items below the block shift by it

        Raises:
            KanbanColumnNotFoundError: Target column is not configured
            FileReadError: Source file unreadable
            InvalidLineError: item.line no longer holds this item's marker (rescan needed)
            FileWriteError: Rewritten file could not be written
        """
        settings = self._settings_provider()
        column = settings.get_column(target_column_id)
        if column is None:
            raise KanbanColumnNotFoundError(target_column_id)

        user = self._user_provider()
        now = self._clock()
        prefix = comment_prefix_for(item.file)
        annotation = self._annotation_for(column, prefix, now, user)

        path = self.project_dir / item.file
        lines = self._read_lines(path)
        new_lines = rewrite_block(lines, item.line, annotation, prefix,
                                  compile_patterns(settings), str(path),
                                  expected=(item.type, item.title))
        self._write_lines(path, new_lines)

        logger.info("Moved %s:%d to %s", item.file, item.line, column.id)

        item.set_status(column.id, user, now)
        if settings.done_column is not None:
            item.mark_done_from_history(settings.done_column.id)
        return len(new_lines) - len(lines)

    @staticmethod
    def _annotation_for(column: KanbanColumn, prefix: str, now: datetime, user: str) -> str:
        # Keyword-entered columns are implied by the marker itself
        if column.is_keyword_entered:
            return ""
        return format_status_annotation(prefix, column.name, now, user)

    @staticmethod
    def _read_lines(path: Path) -> list[str]:
        try:
            with open(path, encoding="utf-8", newline="") as f:
                return split_lines(f.read())
        except (OSError, UnicodeDecodeError) as e:
            raise FileReadError(str(path), str(e)) from e

    @staticmethod
    def _write_lines(path: Path, lines: list[str]) -> None:
        """Write lines atomically: temp file in the same directory + replace."""
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".kodo.tmp",
            )
        except OSError as e:
            raise FileWriteError(str(path), str(e)) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write("".join(lines))
            shutil.copymode(path, temp_path)
            os.replace(temp_path, path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise FileWriteError(str(path), str(e)) from e


def find_block_end(lines: list[str], start: int, prefix: str, patterns: CompiledPatterns) -> int:
    """
    Index of the last line of the comment block opened at `start`.

    The block runs while lines are comments in the file's own syntax, and
    stops before a line that opens another item.
    """
    end = start
    for index in range(start + 1, len(lines)):
        body = line_body(lines[index])
        if not is_comment_line(body, prefix) or patterns.item.match(body):
            break
        end = index
    return end


def rewrite_block(
    lines: list[str],
    marker_line: int,
    annotation: str,
    prefix: str,
    patterns: CompiledPatterns,
    path: str = "",
    expected: tuple[str, str] | None = None,
) -> list[str]:
    """
    Return `lines` with the block at `marker_line` re-annotated.

    Args:
        lines: File lines with terminators (see split_lines)
        marker_line: 1-based line of the item marker
        annotation: Replacement annotation without terminator, or "" for none
        prefix: Comment prefix of the file
        patterns: Compiled grammar for the current settings
        path: Used in error messages only
        expected: (type, title) the marker must carry, when known

    Raises:
        InvalidLineError: marker_line is out of range, no longer an item marker,
            or holds a different item than `expected`
    """
    if marker_line < 1 or marker_line > len(lines):
        raise InvalidLineError(path, marker_line, len(lines))

    start = marker_line - 1
    match = patterns.item.match(line_body(lines[start]))
    if not match:
        raise InvalidLineError(path, marker_line, len(lines), reason="marker moved")
    found = (match.group(2), strip_html_close(match.group(3) or ""))
    if expected is not None and found != expected:
        raise InvalidLineError(
            path, marker_line, len(lines), reason="different item at this line"
        )

    end = find_block_end(lines, start, prefix, patterns)
    default_eol = line_ending(lines[start]) or _first_line_ending(lines)
    tail_eol = line_ending(lines[end])

    # The marker is never stripped even though it matches the keyword alternation
    kept = [lines[start]] + [
        line for line in lines[start + 1:end + 1]
        if not patterns.status_line.match(line_body(line))
    ]
    bodies = [line_body(line) for line in kept]
    endings = [line_ending(line) or default_eol for line in kept]
    if annotation:
        marker = bodies[0]
        indent = marker[: len(marker) - len(marker.lstrip())]
        bodies.append(indent + annotation)
        endings.append(default_eol)
    # The block keeps the terminator its last line had (a file may lack a final newline)
    endings[-1] = tail_eol

    block = [body + eol for body, eol in zip(bodies, endings)]
    return lines[:start] + block + lines[end + 1:]


def _first_line_ending(lines: list[str]) -> str:
    for line in lines:
        if eol := line_ending(line):
            return eol
    return "\n"
