"""
Pytest configuration and shared fixtures.

Provides default settings, a fixed clock, a sample project tree and a git
stub used across the test suite.
"""

import itertools
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from kodo.core.config.loader import get_default_settings
from kodo.core.config.models import KodoSettings
from kodo.core.scanner.parser import ScanContext
from kodo.core.scanner.patterns import clear_cache, compile_patterns

FIXED_NOW = datetime(2024, 1, 5, 17, 30)

# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def settings() -> KodoSettings:
    """Default board: TODO|FIXME -> todo, IN PROGRESS, DONE."""
    return KodoSettings(**get_default_settings())


@pytest.fixture(autouse=True)
def _fresh_patterns():
    """Each test starts with an empty grammar cache."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """KODO_* variables from the developer's shell must not leak into tests."""
    for name in ("KODO_CONFIG_DIR", "KODO_EXCLUDE_DIRECTORIES", "KODO_EXCLUDE_FILES"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_ctx(settings):
    """Factory for a ScanContext with a fresh ID counter."""

    def _make(custom_settings: KodoSettings | None = None, user: str = "tester") -> ScanContext:
        active = custom_settings or settings
        counter = itertools.count(1)
        return ScanContext(
            settings=active,
            patterns=compile_patterns(active),
            user=user,
            now=FIXED_NOW,
            next_id=lambda: next(counter),
        )

    return _make


# ==============================================================================
# Git Fixtures
# ==============================================================================


@pytest.fixture
def no_git():
    """Make every git query fail, as outside a repository."""
    with patch("kodo.utils.git._run_git", return_value=None) as mock_git:
        yield mock_git


@pytest.fixture
def fake_git():
    """
    Git stub whose HEAD can be moved by the test.

    Usage:
        fake_git.commit = "abc123..."
    """

    class FakeGit:
        branch = "main"
        commit = "a" * 40
        message = "initial commit"

        def run(self, args, cwd=None):
            if args == ["rev-parse", "--abbrev-ref", "HEAD"]:
                return self.branch
            if args == ["rev-parse", "HEAD"]:
                return self.commit
            if args == ["rev-parse", "--short", "HEAD"]:
                return self.commit[:7]
            if args[:1] == ["log"]:
                return f"{self.message}\n\nbody"
            if args == ["config", "user.name"]:
                return "alice"
            return None

    fake = FakeGit()
    with patch("kodo.utils.git._run_git", side_effect=fake.run):
        yield fake


# ==============================================================================
# Project Fixtures
# ==============================================================================


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """
    Provide a small project with marker comments.

    Creates:
    - main.go (two items, one annotated IN PROGRESS)
    - app/util.py (one FIXME with HIGH priority)
    - node_modules/lib.js (excluded directory)
    - logo.png (excluded glob)
    """
    project = tmp_path / "project"
    project.mkdir()

    (project / "main.go").write_text(
        "package main\n"
        "\n"
        "// TODO: handle reconnects\n"
        "// retry with backoff\n"
        "func main() {}\n"
        "\n"
        "// TODO: add metrics\n"
        "// IN PROGRESS 2024-01-02 09:00 by alice\n"
        "func metrics() {}\n"
    )

    app_dir = project / "app"
    app_dir.mkdir()
    (app_dir / "util.py").write_text(
        "def parse():\n"
        "    # FIXME: breaks on empty input\n"
        "    # HIGH\n"
        "    return None\n"
    )

    vendored = project / "node_modules"
    vendored.mkdir()
    (vendored / "lib.js").write_text("// TODO: not ours\n")

    (project / "logo.png").write_text("// TODO: binary noise\n")

    return project
