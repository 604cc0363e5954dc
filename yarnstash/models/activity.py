"""
Activity feed models.

Activity records are built on read from domain entities and are never
persisted.
"""

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from .base import isoformat


class ActivityType(str, Enum):
    YARN = "yarn"
    PATTERN = "pattern"
    PROJECT = "project"
    PROGRESS = "progress"


class SummaryPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    def start_from(self, now: datetime) -> datetime:
        """Subtract one unit of this period from ``now``."""
        if self is SummaryPeriod.DAY:
            return now - timedelta(days=1)
        if self is SummaryPeriod.WEEK:
            return now - timedelta(days=7)
        if self is SummaryPeriod.MONTH:
            return shift_months(now, -1)
        return shift_months(now, -12)


def shift_months(value: datetime, months: int) -> datetime:
    """Move ``value`` by a number of calendar months, clamping the day."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


@dataclass
class ActivityRecord:
    """Normalized projection of one domain entity for the activity feed."""
    id: str
    type: ActivityType
    action: str
    description: str
    entity_id: int
    occurred_at: datetime
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "action": self.action,
            "description": self.description,
            "details": self.details,
            "entityId": self.entity_id,
            "occurredAt": isoformat(self.occurred_at),
        }


@dataclass
class ActivityPage:
    """One page of the merged activity feed."""
    activities: List[ActivityRecord]
    total: int
    page: int
    limit: int
    total_pages: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activities": [a.to_dict() for a in self.activities],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }


@dataclass
class ActivitySummary:
    """Per-type activity counts over a trailing window."""
    period: SummaryPeriod
    start_date: datetime
    yarn_added: int = 0
    patterns_added: int = 0
    projects_started: int = 0
    projects_completed: int = 0
    progress_updates: int = 0

    @property
    def total_activities(self) -> int:
        return (
            self.yarn_added
            + self.patterns_added
            + self.projects_started
            + self.projects_completed
            + self.progress_updates
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period.value,
            "startDate": isoformat(self.start_date),
            "summary": {
                "yarnAdded": self.yarn_added,
                "patternsAdded": self.patterns_added,
                "projectsStarted": self.projects_started,
                "projectsCompleted": self.projects_completed,
                "progressUpdates": self.progress_updates,
                "totalActivities": self.total_activities,
            },
        }


@dataclass
class CalendarEntry:
    type: str
    id: int
    title: str
    time: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "title": self.title,
            "time": isoformat(self.time),
        }


@dataclass
class ActivityCalendar:
    """Activities for one month bucketed by UTC calendar day."""
    year: int
    month: int
    days: Dict[str, List[CalendarEntry]] = field(default_factory=dict)

    def add(self, entry: CalendarEntry) -> None:
        key = entry.time.date().isoformat()
        self.days.setdefault(key, []).append(entry)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "calendar": {
                day: [e.to_dict() for e in entries]
                for day, entries in sorted(self.days.items())
            },
        }


@dataclass
class ActivityLog:
    """Flat activity log for a date range, used for exports."""
    export_date: datetime
    user: str
    start: Optional[datetime]
    end: Optional[datetime]
    yarn: List[Dict[str, Any]] = field(default_factory=list)
    patterns: List[Dict[str, Any]] = field(default_factory=list)
    projects: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exportDate": isoformat(self.export_date),
            "user": self.user,
            "period": {
                "start": isoformat(self.start) if self.start else "beginning",
                "end": isoformat(self.end) if self.end else "present",
            },
            "activities": {
                "yarn": self.yarn,
                "patterns": self.patterns,
                "projects": self.projects,
            },
            "summary": {
                "totalYarnAdded": len(self.yarn),
                "totalPatternsAdded": len(self.patterns),
                "totalProjectsStarted": len(self.projects),
                "totalProjectsCompleted": sum(
                    1 for p in self.projects if p.get("status") == "completed"
                ),
            },
        }
