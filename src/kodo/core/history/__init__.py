"""
Item history tracking.

Persists scan results to .kodo/items_history.json and answers questions
about how items changed across commits.
"""

from kodo.core.history.exceptions import (
    HistoryError,
    HistoryWriteError,
    InsufficientHistoryError,
)
from kodo.core.history.models import (
    BranchSnapshot,
    CommitComparison,
    ItemChanges,
    ItemsAnalysis,
    ItemsByFile,
    ItemsHistory,
    ItemStats,
    ItemTrends,
    ProjectStats,
    TaskItem,
)
from kodo.core.history.tracker import HistoryTracker, generate_item_hash

__all__ = [
    "HistoryTracker",
    "generate_item_hash",
    # Models
    "BranchSnapshot",
    "CommitComparison",
    "ItemChanges",
    "ItemsAnalysis",
    "ItemsByFile",
    "ItemsHistory",
    "ItemStats",
    "ItemTrends",
    "ProjectStats",
    "TaskItem",
    # Exceptions
    "HistoryError",
    "HistoryWriteError",
    "InsufficientHistoryError",
]
