"""
History tracker: persists scan results and per-commit snapshots.

Each save rewrites .kodo/items_history.json with the latest counts and items.
A new BranchSnapshot is appended whenever HEAD has moved since the last save
(or git is unavailable), keeping at most MAX_SNAPSHOTS. Queries compare
snapshots by item hash, so an item keeps its identity across scans as long
as its file, line, type and title are unchanged.

Usage:
    >>> tracker = HistoryTracker(project_dir / ".kodo", project_dir)
    >>> tracker.save_stats(items, settings)
    >>> changes = tracker.get_recent_item_changes()
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from kodo.core.config.models import KodoSettings
from kodo.core.history.exceptions import HistoryWriteError, InsufficientHistoryError
from kodo.core.history.models import (
    BranchSnapshot,
    CommitComparison,
    CompletionPoint,
    FileGroup,
    ItemChanges,
    ItemsAnalysis,
    ItemsByFile,
    ItemsHistory,
    ItemStats,
    ItemTrends,
    ProjectStats,
    SnapshotSummary,
    StatusChange,
    TaskItem,
    TimelineEntry,
    TypePoint,
)
from kodo.core.items.models import Item, ItemPriority
from kodo.utils.git import (
    UNKNOWN,
    get_commit_message,
    get_current_branch,
    get_current_commit,
    get_current_commit_short,
)

logger = logging.getLogger(__name__)

HISTORY_FILE = "items_history.json"
MAX_SNAPSHOTS = 50
DEFAULT_MAX_AGE_DAYS = 30

GITIGNORE_CONTENT = """# Kodo temporary files
*.tmp
*.log

# Keep the history but ignore temporary data
!items_history.json
"""


def generate_item_hash(file: str, line: int, item_type: str, title: str) -> str:
    """
    Fingerprint an item for cross-scan identity.

    Status is not part of the hash, so moving an item keeps its identity.
    Returns the first 16 hex digits of SHA-256 over "file:line:type:title".
    """
    content = f"{file}:{line}:{item_type}:{title}"
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from hand-edited files are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _count_in_column(stats: ItemStats, column_id: str, done_column_id: str) -> int:
    return sum(
        1
        for item in stats.items
        if item.status == column_id or (column_id == done_column_id and item.is_done)
    )


def _is_done(item: TaskItem, done_column_id: str | None) -> bool:
    return item.is_done or (done_column_id is not None and item.status == done_column_id)


def _in_column_order(by_status: dict, settings: KodoSettings) -> dict:
    order = {column.id: index for index, column in enumerate(settings.kanban_columns)}
    return dict(sorted(by_status.items(), key=lambda kv: order.get(kv[0], len(order))))


class HistoryTracker:
    """
    Reads and writes the project's item history file.

    Read-modify-write cycles are serialized behind an internal lock.
    """

    def __init__(
        self,
        config_dir: Path,
        project_dir: Path | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            config_dir: Directory holding items_history.json (usually .kodo)
            project_dir: Project root; git queries run here (defaults to cwd)
            clock: Returns the current time (defaults to UTC now)
        """
        self.config_dir = config_dir
        self.project_dir = project_dir or Path.cwd()
        self._clock = clock or _utc_now
        self._lock = threading.RLock()

    @property
    def history_file(self) -> Path:
        return self.config_dir / HISTORY_FILE

    def initialize(self) -> None:
        """
        Create the config directory and its .gitignore.

        Raises:
            HistoryWriteError: Config directory cannot be created
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise HistoryWriteError(str(self.config_dir), str(e)) from e

        gitignore = self.config_dir / ".gitignore"
        if not gitignore.exists():
            try:
                gitignore.write_text(GITIGNORE_CONTENT, encoding="utf-8")
            except OSError as e:
                logger.warning("Failed to create %s: %s", gitignore, e)

    # Persistence

    def load_stats(self) -> ItemsHistory | None:
        """
        Load the history file.

        Returns:
            The parsed history, or None when the file is missing or unreadable
        """
        with self._lock:
            path = self.history_file
            try:
                content = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except OSError as e:
                logger.warning("Failed to read history file %s: %s", path, e)
                return None

            try:
                return ItemsHistory.model_validate(json.loads(content))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.error("Failed to parse history file %s: %s", path, e)
                return None

    def save_stats(self, items: Iterable[Item], settings: KodoSettings | None = None) -> ItemsHistory:
        """
        Record the given scan result.

        Args:
            items: Items from the latest scan
            settings: Used to order status counts by column

        Returns:
            The history as written

        Raises:
            HistoryWriteError: History file cannot be written
        """
        items = list(items)
        with self._lock:
            self.initialize()
            now = self._clock()

            branch = get_current_branch(self.project_dir)
            commit = get_current_commit(self.project_dir)
            commit_short = get_current_commit_short(self.project_dir)

            stats = self._build_item_stats(items, settings)
            items_by_file: dict[str, int] = {}
            for item in items:
                items_by_file[item.file] = items_by_file.get(item.file, 0) + 1

            existing = self.load_stats()
            history = ItemsHistory(
                project_path=str(self.project_dir),
                last_scan_at=now,
                git_branch=branch,
                git_commit=commit,
                git_commit_short=commit_short,
                total_items=stats.total,
                items_by_status=dict(stats.by_status),
                items_by_type=dict(stats.by_type),
                items_by_file=items_by_file,
                current_items=list(stats.items),
                branch_history=list(existing.branch_history) if existing else [],
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )

            # Without git every save is its own snapshot
            if existing is None or existing.git_commit != commit or commit in (UNKNOWN, ""):
                history.branch_history.append(
                    BranchSnapshot(
                        branch=branch,
                        commit=commit,
                        commit_short=commit_short,
                        commit_message=get_commit_message(commit, self.project_dir),
                        timestamp=now,
                        history=stats,
                    )
                )
                history.branch_history = history.branch_history[-MAX_SNAPSHOTS:]

            self._write_history(history)
            logger.info(
                "History saved to %s (%d items, branch %s, commit %s)",
                self.history_file, history.total_items, branch, commit_short,
            )
            return history

    def _write_history(self, history: ItemsHistory) -> None:
        """Write the history file atomically."""
        path = self.history_file
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=".items_history_",
                suffix=".json.tmp",
            )
        except OSError as e:
            raise HistoryWriteError(str(path), str(e)) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(history.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(temp_path, path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise HistoryWriteError(str(path), str(e)) from e

    @staticmethod
    def to_task_item(item: Item) -> TaskItem:
        return TaskItem(
            id=item.id,
            type=item.type,
            title=item.title,
            file=item.file,
            line=item.line,
            status=item.status,
            priority=item.priority,
            is_done=item.is_done,
            done_at=item.done_at,
            done_by=item.done_by,
            hash=generate_item_hash(item.file, item.line, item.type, item.title),
        )

    def _build_item_stats(self, items: list[Item], settings: KodoSettings | None) -> ItemStats:
        by_status: dict[str, int] = {}
        by_type: dict[str, int] = {}
        by_priority: dict[str, int] = {}
        for item in items:
            by_status[item.status] = by_status.get(item.status, 0) + 1
            by_type[item.type] = by_type.get(item.type, 0) + 1
            by_priority[item.priority.value] = by_priority.get(item.priority.value, 0) + 1

        if settings is not None:
            by_status = _in_column_order(by_status, settings)

        return ItemStats(
            total=len(items),
            by_status=by_status,
            by_type=by_type,
            by_priority=by_priority,
            items=[self.to_task_item(item) for item in items],
        )

    # Queries

    def get_branch_history(self) -> list[BranchSnapshot]:
        """Snapshots in arrival order (oldest first)."""
        history = self.load_stats()
        return list(history.branch_history) if history else []

    def _last_two_snapshots(self) -> tuple[BranchSnapshot, BranchSnapshot]:
        snapshots = self.get_branch_history()
        if len(snapshots) < 2:
            raise InsufficientHistoryError(len(snapshots))
        return snapshots[-2], snapshots[-1]

    def get_recent_item_changes(self) -> ItemChanges:
        """
        Diff the two most recent snapshots by item hash.

        Raises:
            InsufficientHistoryError: Fewer than two snapshots
        """
        previous, current = self._last_two_snapshots()
        previous_items = {item.hash: item for item in previous.history.items}
        current_items = {item.hash: item for item in current.history.items}

        changes = ItemChanges()
        for item_hash, item in current_items.items():
            old = previous_items.get(item_hash)
            if old is None:
                changes.added.append(item)
            elif old.status != item.status:
                changes.status_changed.append(
                    StatusChange(item=item, old_status=old.status, new_status=item.status)
                )
        changes.removed = [
            item for item_hash, item in previous_items.items() if item_hash not in current_items
        ]
        return changes

    def get_item_trends(self, settings: KodoSettings) -> ItemTrends:
        """Per-snapshot column counts, completion rate and per-type counts."""
        trends = ItemTrends()
        done_column = settings.done_column
        done_id = done_column.id if done_column else None

        for snapshot in self.get_branch_history():
            stats = snapshot.history
            counts = {
                column.name: _count_in_column(stats, column.id, done_id or "")
                for column in settings.kanban_columns
            }
            trends.timeline.append(
                TimelineEntry(
                    timestamp=snapshot.timestamp,
                    commit=snapshot.commit_short,
                    branch=snapshot.branch,
                    total=stats.total,
                    counts=counts,
                )
            )

            done = sum(1 for item in stats.items if _is_done(item, done_id))
            rate = done / stats.total * 100 if stats.total else 0.0
            trends.completion_rate.append(
                CompletionPoint(timestamp=snapshot.timestamp, commit=snapshot.commit_short, rate=rate)
            )

            for item_type, count in stats.by_type.items():
                trends.type_trends.setdefault(item_type, []).append(
                    TypePoint(timestamp=snapshot.timestamp, commit=snapshot.commit_short, count=count)
                )
        return trends

    def compare_with_previous_commit(self, settings: KodoSettings) -> CommitComparison:
        """
        Per-column count deltas between the two most recent snapshots.

        Raises:
            InsufficientHistoryError: Fewer than two snapshots
        """
        previous, current = self._last_two_snapshots()
        done_column = settings.done_column
        done_id = done_column.id if done_column else ""

        changes = {
            column.name: _count_in_column(current.history, column.id, done_id)
            - _count_in_column(previous.history, column.id, done_id)
            for column in settings.kanban_columns
        }

        def summary(snapshot: BranchSnapshot) -> SnapshotSummary:
            return SnapshotSummary(
                commit=snapshot.commit_short,
                branch=snapshot.branch,
                timestamp=snapshot.timestamp,
                history=snapshot.history,
            )

        return CommitComparison(current=summary(current), previous=summary(previous), changes=changes)

    def cleanup_old_stats(self, max_age_days: int = DEFAULT_MAX_AGE_DAYS) -> int:
        """
        Drop snapshots older than `max_age_days`.

        Returns:
            Number of snapshots removed (the file is only rewritten when > 0)
        """
        with self._lock:
            history = self.load_stats()
            if history is None:
                return 0

            now = self._clock()
            cutoff = _as_utc(now) - timedelta(days=max_age_days)
            kept = [s for s in history.branch_history if _as_utc(s.timestamp) > cutoff]
            removed = len(history.branch_history) - len(kept)
            if removed:
                history.branch_history = kept
                history.updated_at = now
                self._write_history(history)
                logger.info("Cleaned up old history: removed %d, remaining %d", removed, len(kept))
            return removed

    def get_project_stats(self, settings: KodoSettings) -> ProjectStats | None:
        """Summary of the latest saved scan, or None when nothing is saved."""
        history = self.load_stats()
        if history is None:
            return None

        items_by_status = {column.id: 0 for column in settings.kanban_columns}
        done_column = settings.done_column
        for item in history.current_items:
            status = done_column.id if item.is_done and done_column else item.status
            items_by_status[status] = items_by_status.get(status, 0) + 1

        total = history.total_items
        done_count = items_by_status.get(done_column.id, 0) if done_column else 0
        progress = done_count / total * 100 if total else 0.0

        return ProjectStats(
            project_path=history.project_path,
            last_scan=history.last_scan_at,
            git_branch=history.git_branch,
            git_commit_short=history.git_commit_short,
            total_items=total,
            items_by_status=items_by_status,
            progress_percent=progress,
            items_by_type=history.items_by_type,
            items_by_file=history.items_by_file,
            history_count=len(history.branch_history),
            created_at=history.created_at,
            updated_at=history.updated_at,
        )

    def get_task_items_analysis(self, settings: KodoSettings) -> ItemsAnalysis | None:
        """Latest items grouped by file, type and status, plus high-priority items."""
        history = self.load_stats()
        if history is None:
            return None

        analysis = ItemsAnalysis(total_items=len(history.current_items))
        for item in history.current_items:
            analysis.items_by_file.setdefault(item.file, []).append(item)
            analysis.items_by_type.setdefault(item.type, []).append(item)
            analysis.items_by_status.setdefault(item.status, []).append(item)
            if item.priority == ItemPriority.HIGH:
                analysis.high_priority.append(item)
        analysis.items_by_status = _in_column_order(analysis.items_by_status, settings)

        try:
            analysis.recent_changes = self.get_recent_item_changes()
        except InsufficientHistoryError:
            analysis.recent_changes = None
        return analysis

    def get_items_by_file(self, settings: KodoSettings) -> ItemsByFile | None:
        """Per-file totals, high-priority counts and per-column counts."""
        history = self.load_stats()
        if history is None:
            return None

        result = ItemsByFile()
        for item in history.current_items:
            group = result.files.get(item.file)
            if group is None:
                group = FileGroup(status_counts={c.id: 0 for c in settings.kanban_columns})
                result.files[item.file] = group
            group.items.append(item)
            group.total += 1
            if item.status in group.status_counts:
                group.status_counts[item.status] += 1
            if item.priority == ItemPriority.HIGH:
                group.high_priority += 1

        result.total_files = len(result.files)
        return result
