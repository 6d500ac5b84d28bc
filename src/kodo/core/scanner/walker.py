"""
Project tree walker.

Yields the files a scan should look at, pruning excluded directories by name
and skipping files whose project-relative path matches an excluded glob.
Globs use gitignore semantics, so "*.png" matches at any depth and
"docs/**" matches everything under docs/.
"""

import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

import pathspec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """A file selected for scanning."""

    path: Path
    relative_path: str  # POSIX separators, relative to the walk root


def build_file_matcher(patterns: Iterable[str]) -> pathspec.GitIgnoreSpec:
    return pathspec.GitIgnoreSpec.from_lines([p for p in patterns if p.strip()])


def walk_source_files(
    root: Path,
    exclude_directories: Iterable[str] = (),
    exclude_files: Iterable[str] = (),
) -> Iterator[SourceFile]:
    """
    Walk `root` and yield every file that is not excluded.

    Args:
        root: Directory to walk
        exclude_directories: Directory names pruned wherever they occur
        exclude_files: Glob patterns matched against the root-relative path

    Yields:
        SourceFile entries in a stable (sorted) order
    """
    excluded_dirs = set(exclude_directories)
    file_matcher = build_file_matcher(exclude_files)

    def on_error(error: OSError) -> None:
        logger.debug("Skipping unreadable directory %s: %s", error.filename, error)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        # Prune in place so os.walk never descends into excluded directories
        dirnames[:] = sorted(d for d in dirnames if d not in excluded_dirs)

        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            relative = path.relative_to(root).as_posix()
            if file_matcher.match_file(relative):
                continue
            yield SourceFile(path=path, relative_path=relative)
