"""Item models produced by the scanner."""

from kodo.core.items.models import Item, ItemPriority, StatusHistory

__all__ = ["Item", "ItemPriority", "StatusHistory"]
