"""
Marker comment scanning.

Walks a project, parses TODO/FIXME-style comment blocks into Items, and
writes status transitions back into the source as comment annotations.
"""

from kodo.core.scanner.exceptions import (
    FileReadError,
    FileWriteError,
    InvalidLineError,
    ItemNotFoundError,
    KanbanColumnNotFoundError,
    ScannerError,
)
from kodo.core.scanner.patterns import CompiledPatterns, compile_patterns
from kodo.core.scanner.rewriter import StatusRewriter
from kodo.core.scanner.service import ScannerService

__all__ = [
    # Service
    "ScannerService",
    "StatusRewriter",
    # Grammar
    "CompiledPatterns",
    "compile_patterns",
    # Exceptions
    "FileReadError",
    "FileWriteError",
    "InvalidLineError",
    "ItemNotFoundError",
    "KanbanColumnNotFoundError",
    "ScannerError",
]
