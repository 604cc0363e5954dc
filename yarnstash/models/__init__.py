"""
Data models for YarnStash.
"""

from .base import utc_now, parse_datetime, isoformat
from .entities import (
    YarnStock,
    Pattern,
    Project,
    ProjectProgress,
    ProjectStatus,
    ProgressType,
)
from .activity import (
    ActivityType,
    ActivityRecord,
    ActivityPage,
    ActivitySummary,
    ActivityCalendar,
    ActivityLog,
    CalendarEntry,
    SummaryPeriod,
)
from .sync_log import SyncLogEntry, SyncStatus, SyncType
from .snapshot import BackupSnapshot
from .shopping_list import ShoppingList, ShoppingListItem, ItemType

__all__ = [
    "utc_now",
    "parse_datetime",
    "isoformat",
    "YarnStock",
    "Pattern",
    "Project",
    "ProjectProgress",
    "ProjectStatus",
    "ProgressType",
    "ActivityType",
    "ActivityRecord",
    "ActivityPage",
    "ActivitySummary",
    "ActivityCalendar",
    "ActivityLog",
    "CalendarEntry",
    "SummaryPeriod",
    "SyncLogEntry",
    "SyncStatus",
    "SyncType",
    "BackupSnapshot",
    "ShoppingList",
    "ShoppingListItem",
    "ItemType",
]
