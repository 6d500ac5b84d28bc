"""Tests for kodo.core.scanner.walker."""

from pathlib import Path

from kodo.core.scanner.walker import build_file_matcher, walk_source_files


def touch(root: Path, relative: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")


def walked(root: Path, dirs=(), files=()) -> list[str]:
    return [f.relative_path for f in walk_source_files(root, dirs, files)]


class TestWalkSourceFiles:
    def test_yields_all_files_sorted(self, tmp_path: Path) -> None:
        for name in ["b.go", "a.go", "pkg/z.py", "pkg/sub/y.py"]:
            touch(tmp_path, name)

        assert walked(tmp_path) == ["a.go", "b.go", "pkg/z.py", "pkg/sub/y.py"]

    def test_excluded_directory_pruned_at_any_depth(self, tmp_path: Path) -> None:
        touch(tmp_path, "node_modules/lib.js")
        touch(tmp_path, "web/node_modules/dep.js")
        touch(tmp_path, "web/app.js")

        assert walked(tmp_path, dirs=["node_modules"]) == ["web/app.js"]

    def test_directory_exclusion_matches_names_not_paths(self, tmp_path: Path) -> None:
        touch(tmp_path, "web/dist/bundle.js")
        touch(tmp_path, "distribution/keep.js")

        assert walked(tmp_path, dirs=["dist"]) == ["distribution/keep.js"]

    def test_file_globs_match_at_any_depth(self, tmp_path: Path) -> None:
        touch(tmp_path, "logo.png")
        touch(tmp_path, "assets/icons/app.png")
        touch(tmp_path, "assets/style.css")

        assert walked(tmp_path, files=["*.png"]) == ["assets/style.css"]

    def test_file_globs_with_directories(self, tmp_path: Path) -> None:
        touch(tmp_path, "docs/guide.md")
        touch(tmp_path, "docs/api/index.md")
        touch(tmp_path, "src/main.go")

        assert walked(tmp_path, files=["docs/**"]) == ["src/main.go"]

    def test_exact_file_names(self, tmp_path: Path) -> None:
        touch(tmp_path, "README.md")
        touch(tmp_path, "sub/README.md")
        touch(tmp_path, "main.go")

        assert walked(tmp_path, files=["README.md"]) == ["main.go"]

    def test_source_file_paths(self, tmp_path: Path) -> None:
        touch(tmp_path, "pkg/a.go")

        [source] = list(walk_source_files(tmp_path))

        assert source.path == tmp_path / "pkg" / "a.go"
        assert source.relative_path == "pkg/a.go"

    def test_sample_project(self, project_dir: Path, settings) -> None:
        scan = settings.code_scan_settings
        assert walked(project_dir, scan.exclude_directories, scan.exclude_files) == [
            "main.go",
            "app/util.py",
        ]


class TestBuildFileMatcher:
    def test_blank_patterns_ignored(self) -> None:
        matcher = build_file_matcher(["", "  ", "*.log"])
        assert matcher.match_file("server.log")
        assert not matcher.match_file("server.go")
