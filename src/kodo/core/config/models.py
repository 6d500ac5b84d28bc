"""
Settings data models for kodo.

These models define the structure of .kodo/settings.json: the ordered kanban
columns, the priority labels, and the code-scan exclusion rules.
"""

from pydantic import BaseModel, ConfigDict, Field

from kodo.core.items.models import ItemPriority


class KanbanColumn(BaseModel):
    """
    A board column.

    Columns with an auto_assign_pattern are "keyword-entered": an item lands in
    them by virtue of its marker keyword alone. Columns without one are
    "annotation-only" and can only be reached through a status comment.
    """
    id: str = Field(..., description="Stable column identifier, used as item status")
    name: str = Field(..., description="Display name, also used in status annotations")
    color: str = Field(default="gray", description="Board color hint")
    auto_assign_pattern: str | None = Field(
        default=None,
        description="'|'-delimited marker keywords (e.g. 'TODO|FIXME')"
    )

    @property
    def keywords(self) -> list[str]:
        """Marker keywords that enter this column."""
        if self.auto_assign_pattern is None:
            return []
        return [p.strip() for p in self.auto_assign_pattern.split("|") if p.strip()]

    @property
    def is_keyword_entered(self) -> bool:
        return self.auto_assign_pattern is not None


class PriorityPatterns(BaseModel):
    """Labels recognised as priority lines inside an item's comment block."""
    low: str = Field(default="LOW", description="Label for low priority")
    medium: str = Field(default="MEDIUM", description="Label for medium priority")
    high: str = Field(default="HIGH", description="Label for high priority")

    def labels(self) -> list[str]:
        return [label for label in (self.low, self.medium, self.high) if label]

    def resolve(self, label: str) -> ItemPriority | None:
        """Map a configured label back to its priority level."""
        label = label.strip()
        if label == self.low:
            return ItemPriority.LOW
        if label == self.medium:
            return ItemPriority.MEDIUM
        if label == self.high:
            return ItemPriority.HIGH
        return None


class CodeScanSettings(BaseModel):
    """
    File walker exclusions.

    Directory entries match on directory *name* at any depth; file entries are
    gitignore-style globs evaluated against the path relative to the project.
    """
    exclude_directories: list[str] = Field(default_factory=list)
    exclude_files: list[str] = Field(default_factory=list)


class KodoSettings(BaseModel):
    """
    Top-level kodo settings.

    Column order matters: the first column is where newly found items start,
    and the last column is treated as "done" by trend and compare queries.

    Example:
        >>> settings = KodoSettings(kanban_columns=[
        ...     KanbanColumn(id="todo", name="TODO", auto_assign_pattern="TODO"),
        ...     KanbanColumn(id="done", name="DONE"),
        ... ])
        >>> settings.done_column.id
        'done'
    """
    kanban_columns: list[KanbanColumn] = Field(default_factory=list)
    priority_patterns: PriorityPatterns = Field(default_factory=PriorityPatterns)
    code_scan_settings: CodeScanSettings = Field(default_factory=CodeScanSettings)

    model_config = ConfigDict(
        extra="allow",  # github_auth, timestamps, etc. belong to other subsystems
    )

    @property
    def first_column(self) -> KanbanColumn | None:
        return self.kanban_columns[0] if self.kanban_columns else None

    @property
    def done_column(self) -> KanbanColumn | None:
        return self.kanban_columns[-1] if self.kanban_columns else None

    def get_column(self, column_id: str) -> KanbanColumn | None:
        for column in self.kanban_columns:
            if column.id == column_id:
                return column
        return None

    def get_column_by_name(self, name: str) -> KanbanColumn | None:
        """Case-insensitive lookup by display name."""
        wanted = name.strip().upper()
        for column in self.kanban_columns:
            if column.name.strip().upper() == wanted:
                return column
        return None
