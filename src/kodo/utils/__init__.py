"""Utility modules for kodo."""

from .git import (
    UNKNOWN,
    get_commit_message,
    get_current_branch,
    get_current_commit,
    get_current_commit_short,
    get_current_user,
    get_user_name,
)

__all__ = [
    "UNKNOWN",
    "get_commit_message",
    "get_current_branch",
    "get_current_commit",
    "get_current_commit_short",
    "get_current_user",
    "get_user_name",
]
