"""Tests for kodo.core.scanner.patterns and comment helpers."""

from datetime import datetime

import pytest

from kodo.core.config.models import KanbanColumn, KodoSettings
from kodo.core.scanner.comments import (
    comment_prefix_for,
    format_status_annotation,
    is_comment_line,
    split_lines,
    strip_html_close,
)
from kodo.core.scanner.patterns import compile_patterns


class TestItemPattern:
    @pytest.mark.parametrize(
        "line,keyword,title",
        [
            ("// TODO: fix x", "TODO", "fix x"),
            ("    # FIXME: breaks on empty input", "FIXME", "breaks on empty input"),
            ("-- TODO: index this", "TODO", "index this"),
            ("//TODO:tight", "TODO", "tight"),
            ("<!-- TODO: update docs -->", "TODO", "update docs -->"),
        ],
    )
    def test_matches_markers(self, settings, line, keyword, title) -> None:
        match = compile_patterns(settings).item.match(line)
        assert match is not None
        assert match.group(2) == keyword
        assert match.group(3) == title

    def test_empty_title(self, settings) -> None:
        match = compile_patterns(settings).item.match("// TODO:")
        assert match is not None
        assert match.group(3) is None

    @pytest.mark.parametrize(
        "line",
        [
            "// todo: lowercase",
            "x = 1  // TODO: trailing comment",
            "// TODO without colon",
            "// DONE: annotation-only column",
        ],
    )
    def test_rejects(self, settings, line) -> None:
        assert compile_patterns(settings).item.match(line) is None


class TestPriorityPattern:
    def test_matches_label(self, settings) -> None:
        match = compile_patterns(settings).priority.match("// HIGH")
        assert match.group(2) == "HIGH"

    def test_requires_word_boundary(self, settings) -> None:
        assert compile_patterns(settings).priority.match("// HIGHLY unlikely") is None

    def test_custom_labels(self) -> None:
        settings = KodoSettings(
            kanban_columns=[KanbanColumn(id="todo", name="TODO", auto_assign_pattern="TODO")],
            priority_patterns={"low": "P3", "medium": "P2", "high": "P1"},
        )
        patterns = compile_patterns(settings)
        assert patterns.priority.match("# P1").group(2) == "P1"
        assert patterns.priority.match("# HIGH") is None


class TestStatusAnnotationPattern:
    def test_parses_groups(self, settings) -> None:
        match = compile_patterns(settings).status_annotation.match(
            "// IN PROGRESS 2024-01-02 09:00 by alice"
        )
        assert match.group(2) == "IN PROGRESS"
        assert match.group(3) == "2024-01-02 09:00"
        assert match.group(4) == "alice"

    def test_html_annotation_user_excludes_close(self, settings) -> None:
        match = compile_patterns(settings).status_annotation.match(
            "<!-- DONE 2024-01-02 09:00 by Bob Smith -->"
        )
        assert match.group(4) == "Bob Smith"

    def test_keyword_columns_are_not_annotations(self, settings) -> None:
        patterns = compile_patterns(settings)
        assert patterns.status_annotation.match("// TODO 2024-01-02 09:00 by alice") is None

    def test_requires_timestamp(self, settings) -> None:
        assert compile_patterns(settings).status_annotation.match("// DONE by alice") is None


class TestStatusLinePattern:
    @pytest.mark.parametrize(
        "line",
        ["// DONE", "// DONE 2024-01-02 09:00 by a", "// TODO: x", "<!-- DONE -->", "# IN PROGRESS:"],
    )
    def test_matches(self, settings, line) -> None:
        assert compile_patterns(settings).status_line.match(line)

    @pytest.mark.parametrize("line", ["// DONEZO", "// retry later", "// TODOS"])
    def test_rejects(self, settings, line) -> None:
        assert compile_patterns(settings).status_line.match(line) is None


class TestCompileCache:
    def test_same_settings_reuse_grammar(self, settings) -> None:
        assert compile_patterns(settings) is compile_patterns(settings.model_copy(deep=True))

    def test_changed_columns_recompile(self, settings) -> None:
        before = compile_patterns(settings)
        changed = settings.model_copy(deep=True)
        changed.kanban_columns[0].auto_assign_pattern = "TODO|FIXME|HACK"

        after = compile_patterns(changed)

        assert after is not before
        assert after.item.match("// HACK: temporary")
        assert before.item.match("// HACK: temporary") is None

    def test_no_keyword_columns_match_nothing(self) -> None:
        patterns = compile_patterns(KodoSettings())
        assert patterns.matches_nothing
        assert patterns.item.match("// TODO: anything") is None


class TestCommentHelpers:
    @pytest.mark.parametrize(
        "filename,prefix",
        [
            ("main.go", "//"),
            ("src/app.PY", "#"),
            ("schema.sql", "--"),
            ("index.html", "<!--"),
            ("notes.unknown", "//"),
        ],
    )
    def test_comment_prefix_for(self, filename, prefix) -> None:
        assert comment_prefix_for(filename) == prefix

    def test_is_comment_line(self) -> None:
        assert is_comment_line("    # note", "#")
        assert not is_comment_line("code()  # note", "#")
        assert not is_comment_line("   ", "//")
        assert is_comment_line("<p><!-- inline --></p>", "<!--")

    def test_split_lines_keeps_terminators(self) -> None:
        assert split_lines("a\r\nb\nc") == ["a\r\n", "b\n", "c"]
        assert split_lines("a\n") == ["a\n"]
        assert split_lines("") == []

    def test_strip_html_close(self) -> None:
        assert strip_html_close(" update docs --> ") == "update docs"
        assert strip_html_close("plain") == "plain"

    def test_format_status_annotation(self) -> None:
        when = datetime(2024, 1, 2, 9, 0)
        assert format_status_annotation("#", "DONE", when, "alice") == (
            "# DONE 2024-01-02 09:00 by alice"
        )
        assert format_status_annotation("<!--", "DONE", when, "alice") == (
            "<!-- DONE 2024-01-02 09:00 by alice -->"
        )
