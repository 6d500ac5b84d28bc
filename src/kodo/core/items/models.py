"""
Item data models for kodo.

An Item is one marker comment (TODO/FIXME/...) found in a source file, along
with its multi-line description, priority and status history. Items are
rebuilt from scratch on every scan; their `id` is only meaningful within the
scan that produced it.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ItemPriority(str, Enum):
    """Priority levels, in ascending order of urgency."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class StatusHistory(BaseModel):
    """A single status transition, reconstructed from an in-file annotation."""

    status: str = Field(..., description="Column ID the item moved to")
    timestamp: datetime = Field(..., description="When the transition happened")
    user: str = Field(..., description="Who made the transition")


class Item(BaseModel):
    """
    A marker comment found by the scanner.

    Example:
        >>> item = Item(id=1, type="TODO", title="fix x", file="a.go", line=3,
        ...             status="todo", created_at=now, updated_at=now)
        >>> item.full_title
        'TODO: fix x'
    """

    id: int = Field(..., description="Scan-local sequence number, not a stable identity")
    type: str = Field(..., description="Marker keyword, e.g. TODO or FIXME")
    title: str = Field(default="", description="Text after the marker keyword")
    description: str = Field(default="", description="Following comment lines, newline-joined")
    file: str = Field(..., description="Path relative to the project root (POSIX separators)")
    line: int = Field(..., ge=1, description="1-based line number of the marker")
    status: str = Field(..., description="Current column ID")
    priority: ItemPriority = Field(default=ItemPriority.LOW)
    is_done: bool = Field(default=False)
    done_at: datetime | None = Field(default=None)
    done_by: str | None = Field(default=None)
    history: list[StatusHistory] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    current_user: str = Field(default="")

    @property
    def full_title(self) -> str:
        return f"{self.type}: {self.title}"

    def set_status(self, status: str, user: str, when: datetime) -> None:
        """Record a transition to `status`; no-op if already there."""
        if self.status == status:
            return
        self.status = status
        self.updated_at = when
        self.current_user = user
        self.history.append(StatusHistory(status=status, timestamp=when, user=user))

    def mark_done_from_history(self, done_status: str) -> None:
        """Derive is_done/done_at/done_by from the current status and history."""
        if self.status != done_status:
            self.is_done = False
            self.done_at = None
            self.done_by = None
            return
        self.is_done = True
        for entry in reversed(self.history):
            if entry.status == done_status:
                self.done_at = entry.timestamp
                self.done_by = entry.user
                return
