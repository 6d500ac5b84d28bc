"""
Scanner service: the one entry point the CLI (or any other front end) uses.

Owns the current item list, runs scans, routes status changes through the
StatusRewriter and hands results to the HistoryTracker. Scans, rewrites and
saves all happen behind a single re-entrant lock.

Usage:
    >>> service = ScannerService.from_project_dir(Path.cwd())
    >>> items = service.scan()
    >>> service.update_item_status(items[0].id, "in_progress")
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from kodo.core.config.loader import get_config_dir, load_settings
from kodo.core.config.models import KodoSettings
from kodo.core.items.models import Item, ItemPriority
from kodo.core.scanner.exceptions import ItemNotFoundError
from kodo.core.scanner.parser import ScanContext, parse_content
from kodo.core.scanner.patterns import compile_patterns
from kodo.core.scanner.rewriter import StatusRewriter
from kodo.core.scanner.walker import walk_source_files
from kodo.utils.git import get_current_user

if TYPE_CHECKING:
    from kodo.core.history.tracker import HistoryTracker

logger = logging.getLogger(__name__)


class ScannerService:
    """
    Scans a project for marker comments and keeps the resulting items.

    Item IDs restart at 1 on every scan, so an ID from an older scan may
    point at a different item after rescanning.
    """

    def __init__(
        self,
        project_dir: Path | None = None,
        settings_provider: Callable[[], KodoSettings] | None = None,
        tracker: HistoryTracker | None = None,
        user_provider: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            project_dir: Project root (defaults to cwd)
            settings_provider: Returns the live settings (defaults to load_settings)
            tracker: History tracker used by rescan and migrate_statuses
            user_provider: Returns the user to attribute changes to
            clock: Returns the current local time
        """
        self.project_dir = (project_dir or Path.cwd()).resolve()
        self._settings_provider = settings_provider or (lambda: load_settings(self.project_dir))
        self.tracker = tracker
        self._user_provider = user_provider or (lambda: get_current_user(self.project_dir))
        self._clock = clock or datetime.now
        self._rewriter = StatusRewriter(
            self.project_dir,
            self._settings_provider,
            user_provider=self._user_provider,
            clock=self._clock,
        )
        self._lock = threading.RLock()
        self._items: list[Item] = []

    @classmethod
    def from_project_dir(
        cls, project_dir: Path, config_dir: Path | None = None
    ) -> ScannerService:
        """Build a service wired to the project's settings file and history."""
        from kodo.core.history.tracker import HistoryTracker

        project_dir = project_dir.resolve()
        config_dir = config_dir or get_config_dir(project_dir)
        return cls(
            project_dir=project_dir,
            settings_provider=lambda: load_settings(project_dir, config_dir=config_dir),
            tracker=HistoryTracker(config_dir, project_dir),
        )

    @property
    def settings(self) -> KodoSettings:
        return self._settings_provider()

    @property
    def items(self) -> list[Item]:
        with self._lock:
            return list(self._items)

    def scan(self) -> list[Item]:
        """
        Walk the project and parse every readable file.

        Unreadable or non-UTF-8 files are skipped. Returns the new item list,
        which also replaces the service's current items.
        """
        with self._lock:
            settings = self._settings_provider()
            counter = itertools.count(1)
            ctx = ScanContext(
                settings=settings,
                patterns=compile_patterns(settings),
                user=self._user_provider(),
                now=self._clock(),
                next_id=lambda: next(counter),
            )

            items: list[Item] = []
            if ctx.patterns.matches_nothing:
                logger.warning("No keyword-entered kanban columns configured; nothing to scan")
            else:
                scan_settings = settings.code_scan_settings
                for source in walk_source_files(
                    self.project_dir,
                    scan_settings.exclude_directories,
                    scan_settings.exclude_files,
                ):
                    try:
                        # Only "\n" splits lines, matching the rewriter
                        with open(source.path, encoding="utf-8", newline="") as f:
                            content = f.read()
                    except (OSError, UnicodeDecodeError) as e:
                        logger.debug("Skipping %s: %s", source.relative_path, e)
                        continue
                    items.extend(parse_content(content, source.relative_path, ctx))

            self._items = items
            logger.info("Scan found %d items in %s", len(items), self.project_dir)
            return list(items)

    def rescan(self) -> list[Item]:
        """Scan, then persist a history snapshot if a tracker is attached."""
        with self._lock:
            items = self.scan()
            if self.tracker is not None:
                self.tracker.save_stats(items, self._settings_provider())
            return items

    def get_item(self, item_id: int) -> Item:
        """
        Raises:
            ItemNotFoundError: No item with that ID in the last scan
        """
        with self._lock:
            for item in self._items:
                if item.id == item_id:
                    return item
        raise ItemNotFoundError(item_id)

    def get_items_by_type(self, item_type: str) -> list[Item]:
        with self._lock:
            return [item for item in self._items if item.type == item_type]

    def get_items_by_status(self, status: str) -> list[Item]:
        with self._lock:
            return [item for item in self._items if item.status == status]

    def get_items_by_priority(self, priority: ItemPriority | str) -> list[Item]:
        priority = ItemPriority(priority)
        with self._lock:
            return [item for item in self._items if item.priority == priority]

    def get_items_by_category(self) -> dict[str, list[Item]]:
        """Items grouped by marker keyword."""
        categories: dict[str, list[Item]] = {}
        with self._lock:
            for item in self._items:
                categories.setdefault(item.type, []).append(item)
        return categories

    def update_item_status(self, item_or_id: Item | int, column_id: str) -> Item:
        """
        Move an item to another column by rewriting its source comment.

        Args:
            item_or_id: The item, or its ID in the last scan
            column_id: Target column ID

        Returns:
            The updated item

        Raises:
            ItemNotFoundError: Unknown item ID
            KanbanColumnNotFoundError, FileReadError, InvalidLineError,
            FileWriteError: From the rewriter
        """
        with self._lock:
            item = self.get_item(item_or_id) if isinstance(item_or_id, int) else item_or_id
            delta = self._rewriter.apply(item, column_id)
            if delta:
                # Keep cached positions in step with the rewritten file
                for other in self._items:
                    if other is not item and other.file == item.file and other.line > item.line:
                        other.line += delta
            return item

    def migrate_statuses(self, old_settings: KodoSettings, new_settings: KodoSettings) -> dict[str, str]:
        """
        Carry items over a column rename.

        Columns are matched by position: when the column at index i has a
        different ID in `new_settings`, items and history entries with the old
        ID take the new one. History is saved afterwards.

        Returns:
            Mapping of old column ID to new column ID
        """
        old_ids = [c.id for c in old_settings.kanban_columns]
        new_ids = [c.id for c in new_settings.kanban_columns]
        renamed = {old: new for old, new in zip(old_ids, new_ids) if old != new}
        if not renamed:
            return renamed

        logger.info("Migrating column IDs: %s", renamed)
        done_column = new_settings.done_column
        with self._lock:
            for item in self._items:
                item.status = renamed.get(item.status, item.status)
                for entry in item.history:
                    entry.status = renamed.get(entry.status, entry.status)
                if done_column is not None:
                    item.mark_done_from_history(done_column.id)
            if self.tracker is not None:
                self.tracker.save_stats(self._items, new_settings)
        return renamed
