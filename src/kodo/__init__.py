"""
Kodo: a kanban board for the TODO and FIXME comments in your code.

Scans a project for marker comments, tracks their status through in-file
annotations, and records per-commit history.
"""

__version__ = "0.1.0"
