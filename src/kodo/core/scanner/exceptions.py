"""
Exceptions raised by the scanner and status rewriter.

Exception Hierarchy:
    ScannerError (base)
    ├── KanbanColumnNotFoundError (target column not configured)
    ├── ItemNotFoundError (no item with that ID in the last scan)
    ├── FileReadError (source file could not be read)
    ├── InvalidLineError (item line no longer exists; rescan needed)
    └── FileWriteError (source file could not be rewritten)

Scan-time read failures are logged and skipped rather than raised; these
exceptions surface from direct user actions such as moving an item.
"""


class ScannerError(Exception):
    """
    Base exception for scanner errors.

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


class KanbanColumnNotFoundError(ScannerError):
    """Raised when a status change targets a column ID that is not configured."""

    def __init__(self, column_id: str, **context: object) -> None:
        super().__init__(f"kanban column with ID '{column_id}' not found", **context)
        self.column_id = column_id


class ItemNotFoundError(ScannerError):
    """Raised when an item ID does not exist in the current scan."""

    def __init__(self, item_id: int, **context: object) -> None:
        super().__init__(f"item {item_id} not found; rescan and retry", **context)
        self.item_id = item_id


class FileReadError(ScannerError):
    """Raised when the file owning an item cannot be read."""

    def __init__(self, path: str, reason: str, **context: object) -> None:
        super().__init__(f"failed to read file {path}: {reason}", **context)
        self.path = path


class InvalidLineError(ScannerError):
    """
    Raised when an item's line is outside the file or no longer holds its marker.

    The file changed since the scan; callers should rescan before retrying.
    """

    def __init__(
        self, path: str, line: int, line_count: int, reason: str | None = None, **context: object
    ) -> None:
        message = f"invalid line number {line} in {path} (file has {line_count} lines)"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, **context)
        self.reason = reason
        self.path = path
        self.line = line
        self.line_count = line_count


class FileWriteError(ScannerError):
    """Raised when the rewritten file cannot be written back."""

    def __init__(self, path: str, reason: str, **context: object) -> None:
        super().__init__(f"failed to write file {path}: {reason}", **context)
        self.path = path
