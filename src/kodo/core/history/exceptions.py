"""
Exceptions raised by the history tracker.

Exception Hierarchy:
    HistoryError (base)
    ├── HistoryWriteError (history file could not be written)
    └── InsufficientHistoryError (query needs more snapshots than exist)

Reading a missing or malformed history file is not an error: load_stats()
logs and returns None.
"""


class HistoryError(Exception):
    """
    Base exception for history errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class HistoryWriteError(HistoryError):
    """Raised when the history file cannot be written."""

    def __init__(self, path: str, reason: str, **context: object) -> None:
        super().__init__(f"failed to write history file {path}: {reason}", **context)
        self.path = path


class InsufficientHistoryError(HistoryError):
    """Raised when a comparison needs at least `required` snapshots."""

    def __init__(self, available: int, required: int = 2, **context: object) -> None:
        super().__init__(
            f"not enough history for comparison ({available} snapshot(s), need {required})",
            **context,
        )
        self.available = available
        self.required = required
