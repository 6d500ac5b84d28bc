"""
Git utilities for kodo.

Thin wrappers around the git CLI used to anchor history snapshots to commits
and to attribute status changes to a user. None of these ever raise: when git
is missing or the directory is not a repository they fall back to
UNKNOWN, an empty string, or None.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


def _run_git(args: list[str], cwd: Path | None = None) -> str | None:
    """Run a git command and return its stripped stdout, or None on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            check=True,
            cwd=cwd,
        )
        return result.stdout.strip()
    except subprocess.CalledProcessError as e:
        logger.debug("git %s failed: %s", " ".join(args), e)
        return None
    except (FileNotFoundError, OSError) as e:
        # Git not installed, or cwd does not exist
        logger.debug("git unavailable: %s", e)
        return None


def get_current_branch(cwd: Path | None = None) -> str:
    """
    Get the current git branch name.

    Returns:
        Branch name, "HEAD" when detached, or UNKNOWN outside a repository
    """
    return _run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd) or UNKNOWN


def get_current_commit(cwd: Path | None = None) -> str:
    """
    Get the current HEAD commit hash.

    Returns:
        Full commit hash or UNKNOWN if not in a git repo
    """
    return _run_git(["rev-parse", "HEAD"], cwd) or UNKNOWN


def get_current_commit_short(cwd: Path | None = None) -> str:
    """Get the abbreviated HEAD commit hash, or UNKNOWN."""
    return _run_git(["rev-parse", "--short", "HEAD"], cwd) or UNKNOWN


def get_commit_message(commit: str, cwd: Path | None = None) -> str:
    """
    Get the subject line of a commit message.

    Args:
        commit: Commit hash or ref

    Returns:
        First line of the message, or "" if unavailable
    """
    if not commit or commit == UNKNOWN:
        return ""

    message = _run_git(["log", "--format=%B", "-n", "1", commit], cwd)
    if not message:
        return ""
    return message.split("\n", 1)[0].strip()


def get_user_name(cwd: Path | None = None) -> str | None:
    """Get `git config user.name`, or None if unset."""
    return _run_git(["config", "user.name"], cwd) or None


def get_current_user(cwd: Path | None = None) -> str:
    """
    Resolve the user to attribute status changes to.

    Resolution order: git user.name, $USER, $USERNAME, then "unknown".
    """
    if user := get_user_name(cwd):
        return user
    if user := os.environ.get("USER"):
        return user
    if user := os.environ.get("USERNAME"):
        return user
    return UNKNOWN
