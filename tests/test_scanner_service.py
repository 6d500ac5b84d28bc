"""Tests for kodo.core.scanner.service."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from kodo.core.config.models import KanbanColumn, KodoSettings
from kodo.core.history.tracker import HistoryTracker
from kodo.core.items.models import ItemPriority
from kodo.core.scanner.exceptions import ItemNotFoundError, KanbanColumnNotFoundError
from kodo.core.scanner.service import ScannerService


@pytest.fixture
def make_service(project_dir, settings, fixed_now):
    def _make(custom_settings: KodoSettings | None = None, tracker=None) -> ScannerService:
        active = custom_settings or settings
        return ScannerService(
            project_dir=project_dir,
            settings_provider=lambda: active,
            tracker=tracker,
            user_provider=lambda: "tester",
            clock=lambda: fixed_now,
        )

    return _make


class TestScan:
    def test_finds_items_in_walk_order(self, make_service) -> None:
        items = make_service().scan()

        assert [(i.id, i.file, i.line, i.type) for i in items] == [
            (1, "main.go", 3, "TODO"),
            (2, "main.go", 7, "TODO"),
            (3, "app/util.py", 2, "FIXME"),
        ]

    def test_item_details(self, make_service) -> None:
        reconnects, metrics, fixme = make_service().scan()

        assert reconnects.description == "retry with backoff"
        assert reconnects.status == "todo"
        assert metrics.status == "in_progress"
        assert metrics.history[0].user == "alice"
        assert fixme.priority == ItemPriority.HIGH

    def test_excluded_paths_are_skipped(self, make_service) -> None:
        files = {item.file for item in make_service().scan()}
        assert "node_modules/lib.js" not in files
        assert "logo.png" not in files

    def test_ids_restart_each_scan(self, make_service) -> None:
        service = make_service()
        service.scan()
        assert [i.id for i in service.scan()] == [1, 2, 3]

    def test_items_property_returns_copy(self, make_service) -> None:
        service = make_service()
        service.scan()
        service.items.clear()
        assert len(service.items) == 3

    def test_non_utf8_file_skipped(self, make_service, project_dir: Path) -> None:
        (project_dir / "bad.go").write_bytes(b"\xff\xfe// TODO: broken\n")
        assert len(make_service().scan()) == 3

    def test_no_columns_gives_empty_scan(self, make_service, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            assert make_service(KodoSettings()).scan() == []
        assert "No keyword-entered kanban columns" in caplog.text

    def test_settings_change_applies_on_next_scan(self, make_service, settings) -> None:
        current = {"settings": settings}
        service = make_service()
        service._settings_provider = lambda: current["settings"]
        assert len(service.scan()) == 3

        current["settings"] = KodoSettings(
            kanban_columns=[
                KanbanColumn(id="bugs", name="BUGS", auto_assign_pattern="FIXME"),
                KanbanColumn(id="done", name="DONE"),
            ]
        )

        [item] = service.scan()
        assert item.type == "FIXME"
        assert item.status == "bugs"


class TestQueries:
    def test_get_item(self, make_service) -> None:
        service = make_service()
        service.scan()
        assert service.get_item(2).title == "add metrics"

    def test_get_item_missing(self, make_service) -> None:
        service = make_service()
        service.scan()
        with pytest.raises(ItemNotFoundError) as exc_info:
            service.get_item(99)
        assert exc_info.value.item_id == 99

    def test_filters(self, make_service) -> None:
        service = make_service()
        service.scan()

        assert [i.id for i in service.get_items_by_type("FIXME")] == [3]
        assert [i.id for i in service.get_items_by_status("in_progress")] == [2]
        assert [i.id for i in service.get_items_by_priority("HIGH")] == [3]
        assert [i.id for i in service.get_items_by_priority(ItemPriority.LOW)] == [1, 2]

    def test_get_items_by_category(self, make_service) -> None:
        service = make_service()
        service.scan()

        categories = service.get_items_by_category()

        assert {k: [i.id for i in v] for k, v in categories.items()} == {
            "TODO": [1, 2],
            "FIXME": [3],
        }


class TestUpdateItemStatus:
    def test_by_id_rewrites_source(self, make_service, project_dir: Path) -> None:
        service = make_service()
        service.scan()

        item = service.update_item_status(1, "done")

        assert item.status == "done"
        assert "// DONE 2024-01-05 17:30 by tester" in (project_dir / "main.go").read_text()
        [rescanned] = [i for i in service.scan() if i.title == "handle reconnects"]
        assert rescanned.is_done

    def test_by_item(self, make_service) -> None:
        service = make_service()
        [_, metrics, _] = service.scan()

        service.update_item_status(metrics, "done")

        assert service.get_item(2).status == "done"

    def test_later_items_in_same_file_follow_rewrite(self, make_service, project_dir: Path) -> None:
        path = project_dir / "tasks.go"
        path.write_text(
            "// TODO: a\n"
            "// IN PROGRESS 2024-01-02 09:00 by alice\n"
            "// TODO: b\n"
            "// TODO: c\n"
        )
        service = make_service()
        a, b, c = [i for i in service.scan() if i.file == "tasks.go"]

        service.update_item_status(a, "todo")
        assert (b.line, c.line) == (2, 3)

        service.update_item_status(b, "done")

        assert path.read_text() == (
            "// TODO: a\n"
            "// TODO: b\n"
            "// DONE 2024-01-05 17:30 by tester\n"
            "// TODO: c\n"
        )
        assert b.status == "done"
        assert c.status == "todo"
        assert c.line == 4

    def test_items_in_other_files_keep_their_lines(self, make_service) -> None:
        service = make_service()
        service.scan()

        service.update_item_status(1, "done")

        assert service.get_item(2).line == 8
        assert service.get_item(3).line == 2

    def test_lone_carriage_return_keeps_line_numbers(
        self, make_service, project_dir: Path
    ) -> None:
        path = project_dir / "cr.go"
        path.write_bytes(b'x := "a\rb"\n// TODO: fix x\ncode()\n')
        service = make_service()
        [item] = [i for i in service.scan() if i.file == "cr.go"]

        assert item.line == 2
        service.update_item_status(item, "done")

        assert path.read_bytes() == (
            b'x := "a\rb"\n// TODO: fix x\n// DONE 2024-01-05 17:30 by tester\ncode()\n'
        )

    def test_unknown_id(self, make_service) -> None:
        service = make_service()
        service.scan()
        with pytest.raises(ItemNotFoundError):
            service.update_item_status(42, "done")

    def test_unknown_column(self, make_service) -> None:
        service = make_service()
        service.scan()
        with pytest.raises(KanbanColumnNotFoundError):
            service.update_item_status(1, "archived")


class TestRescan:
    def test_saves_history(self, make_service, settings) -> None:
        tracker = MagicMock(spec=HistoryTracker)
        service = make_service(tracker=tracker)

        items = service.rescan()

        tracker.save_stats.assert_called_once_with(items, settings)

    def test_without_tracker(self, make_service) -> None:
        assert len(make_service().rescan()) == 3


class TestMigrateStatuses:
    def test_renamed_column_carried_over(self, make_service, settings) -> None:
        tracker = MagicMock(spec=HistoryTracker)
        service = make_service(tracker=tracker)
        service.scan()
        new_settings = settings.model_copy(deep=True)
        new_settings.kanban_columns[1].id = "doing"

        renamed = service.migrate_statuses(settings, new_settings)

        assert renamed == {"in_progress": "doing"}
        metrics = service.get_item(2)
        assert metrics.status == "doing"
        assert [h.status for h in metrics.history] == ["doing"]
        tracker.save_stats.assert_called_once()

    def test_rename_of_done_column_keeps_done_flag(self, make_service, settings) -> None:
        service = make_service()
        service.scan()
        service.update_item_status(1, "done")
        new_settings = settings.model_copy(deep=True)
        new_settings.kanban_columns[2].id = "finished"

        service.migrate_statuses(settings, new_settings)

        item = service.get_item(1)
        assert item.status == "finished"
        assert item.is_done

    def test_no_changes(self, make_service, settings) -> None:
        tracker = MagicMock(spec=HistoryTracker)
        service = make_service(tracker=tracker)
        service.scan()

        assert service.migrate_statuses(settings, settings) == {}
        tracker.save_stats.assert_not_called()


class TestFromProjectDir:
    def test_wires_config_dir(self, project_dir: Path) -> None:
        service = ScannerService.from_project_dir(project_dir)

        assert service.project_dir == project_dir.resolve()
        assert service.tracker.config_dir == project_dir.resolve() / ".kodo"
        assert service.settings.first_column.id == "todo"
