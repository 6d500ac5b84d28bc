"""
History data models for kodo.

The persisted file (.kodo/items_history.json) is an ItemsHistory: the latest
scan's counts and items plus a bounded list of per-commit snapshots. Items are
identified across scans by a content hash rather than by their scan-local ID.

The remaining models are typed results of history queries.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from kodo.core.items.models import ItemPriority


class TaskItem(BaseModel):
    """Persisted view of an Item, identified across scans by `hash`."""

    id: int
    type: str
    title: str = ""
    file: str
    line: int
    status: str
    priority: ItemPriority = ItemPriority.LOW
    is_done: bool = False
    done_at: datetime | None = None
    done_by: str | None = None
    hash: str = Field(..., description="Fingerprint of (file, line, type, title)")


class ItemStats(BaseModel):
    """Counts and items for one snapshot."""

    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
    by_priority: dict[str, int] = Field(default_factory=dict)
    items: list[TaskItem] = Field(default_factory=list)


class BranchSnapshot(BaseModel):
    """Item stats observed at one commit."""

    branch: str
    commit: str
    commit_short: str
    commit_message: str = ""
    timestamp: datetime
    history: ItemStats = Field(default_factory=ItemStats)


class ItemsHistory(BaseModel):
    """
    Root of the history file.

    Unknown keys are preserved so newer files survive a round trip through
    an older kodo.
    """

    project_path: str
    last_scan_at: datetime
    git_branch: str
    git_commit: str
    git_commit_short: str
    total_items: int = 0
    items_by_status: dict[str, int] = Field(default_factory=dict)
    items_by_type: dict[str, int] = Field(default_factory=dict)
    items_by_file: dict[str, int] = Field(default_factory=dict)
    current_items: list[TaskItem] = Field(default_factory=list)
    branch_history: list[BranchSnapshot] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(extra="allow")


# Query results


class StatusChange(BaseModel):
    item: TaskItem
    old_status: str
    new_status: str


class ItemChanges(BaseModel):
    """Diff between the two most recent snapshots."""

    added: list[TaskItem] = Field(default_factory=list)
    removed: list[TaskItem] = Field(default_factory=list)
    status_changed: list[StatusChange] = Field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "status_changed": len(self.status_changed),
        }


class TimelineEntry(BaseModel):
    timestamp: datetime
    commit: str
    branch: str
    total: int
    counts: dict[str, int] = Field(default_factory=dict, description="Item count per column name")


class CompletionPoint(BaseModel):
    timestamp: datetime
    commit: str
    rate: float = Field(..., description="Percent of items done")


class TypePoint(BaseModel):
    timestamp: datetime
    commit: str
    count: int


class ItemTrends(BaseModel):
    timeline: list[TimelineEntry] = Field(default_factory=list)
    completion_rate: list[CompletionPoint] = Field(default_factory=list)
    type_trends: dict[str, list[TypePoint]] = Field(default_factory=dict)


class SnapshotSummary(BaseModel):
    commit: str
    branch: str
    timestamp: datetime
    history: ItemStats


class CommitComparison(BaseModel):
    current: SnapshotSummary
    previous: SnapshotSummary
    changes: dict[str, int] = Field(
        default_factory=dict, description="Per column name: current count minus previous"
    )


class ProjectStats(BaseModel):
    project_path: str
    last_scan: datetime
    git_branch: str
    git_commit_short: str
    total_items: int
    items_by_status: dict[str, int]
    progress_percent: float
    items_by_type: dict[str, int]
    items_by_file: dict[str, int]
    history_count: int
    created_at: datetime
    updated_at: datetime


class FileGroup(BaseModel):
    items: list[TaskItem] = Field(default_factory=list)
    total: int = 0
    high_priority: int = 0
    status_counts: dict[str, int] = Field(default_factory=dict)


class ItemsByFile(BaseModel):
    files: dict[str, FileGroup] = Field(default_factory=dict)
    total_files: int = 0


class ItemsAnalysis(BaseModel):
    total_items: int
    items_by_file: dict[str, list[TaskItem]] = Field(default_factory=dict)
    items_by_type: dict[str, list[TaskItem]] = Field(default_factory=dict)
    items_by_status: dict[str, list[TaskItem]] = Field(default_factory=dict)
    high_priority: list[TaskItem] = Field(default_factory=list)
    recent_changes: ItemChanges | None = None
