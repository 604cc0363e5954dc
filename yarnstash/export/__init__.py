"""
Export formatting for activity logs, shopping lists and backups.
"""

from .documents import (
    ActivityLogDocument,
    Checklist,
    ChecklistItem,
    ExportDocument,
    ExportSection,
    ShoppingListDocument,
    SnapshotDocument,
)
from .formatter import ExportFormatter, ExportKind, ExportResult, parse_export_kind

__all__ = [
    "ActivityLogDocument",
    "Checklist",
    "ChecklistItem",
    "ExportDocument",
    "ExportSection",
    "ShoppingListDocument",
    "SnapshotDocument",
    "ExportFormatter",
    "ExportKind",
    "ExportResult",
    "parse_export_kind",
]
