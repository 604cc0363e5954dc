"""
Multi-entity activity aggregation.

Fans out one read per entity family, merges the normalized records into a
single time-ordered feed and paginates over the merged result.
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Union

from .normalizers import NORMALIZER_REGISTRY, ActivityNormalizer
from ..data.base import PatternRepository, ProgressRepository, ProjectRepository, YarnRepository
from ..exceptions import ValidationError
from ..models.activity import (
    ActivityCalendar,
    ActivityLog,
    ActivityPage,
    ActivityRecord,
    ActivitySummary,
    ActivityType,
    CalendarEntry,
    SummaryPeriod,
)
from ..models.base import isoformat, utc_now

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def parse_activity_types(types: Optional[Iterable[Union[str, ActivityType]]]) -> List[ActivityType]:
    """
    Resolve a type filter to registry ordered activity types.

    Raises:
        ValidationError: If a type is unknown
    """
    if not types:
        return list(NORMALIZER_REGISTRY)

    selected = set()
    for value in types:
        try:
            selected.add(ActivityType(value))
        except ValueError:
            raise ValidationError(
                f"Unknown activity type: {value}",
                error_code="INVALID_ACTIVITY_TYPE",
            )
    return [t for t in NORMALIZER_REGISTRY if t in selected]


def parse_period(value: Union[str, SummaryPeriod, None]) -> SummaryPeriod:
    if value is None:
        return SummaryPeriod.WEEK
    try:
        return SummaryPeriod(value)
    except ValueError:
        raise ValidationError(f"Unknown period: {value}", error_code="INVALID_PERIOD")


class ActivityAggregator:
    """Read-only activity views over a user's yarn, patterns, projects and progress."""

    def __init__(
        self,
        yarn_repo: YarnRepository,
        pattern_repo: PatternRepository,
        project_repo: ProjectRepository,
        progress_repo: ProgressRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.yarn_repo = yarn_repo
        self.pattern_repo = pattern_repo
        self.project_repo = project_repo
        self.progress_repo = progress_repo
        self.clock = clock

        repositories = {
            ActivityType.YARN: yarn_repo,
            ActivityType.PATTERN: pattern_repo,
            ActivityType.PROJECT: project_repo,
            ActivityType.PROGRESS: progress_repo,
        }
        self.normalizers: Dict[ActivityType, ActivityNormalizer] = {
            activity_type: normalizer_cls(repositories[activity_type])
            for activity_type, normalizer_cls in NORMALIZER_REGISTRY.items()
        }

    async def get_recent_activity(
        self,
        user_id: int,
        limit: int = DEFAULT_LIMIT,
        page: int = 1,
        types: Optional[Iterable[Union[str, ActivityType]]] = None,
    ) -> ActivityPage:
        """
        Build one page of the merged activity feed.

        Each selected family contributes at most ``limit`` of its newest
        rows, so a family with many recent rows can be under-represented
        on later pages. Records with equal timestamps keep family order
        (yarn, pattern, project, progress) and then fetch order.

        Args:
            user_id: Owning user
            limit: Page size and per-family fetch cap (at most 100)
            page: 1-based page number
            types: Optional subset of activity types

        Returns:
            The requested page with merged totals

        Raises:
            ValidationError: On a bad page, limit or type
        """
        if limit < 1:
            raise ValidationError("limit must be at least 1", error_code="INVALID_LIMIT")
        if page < 1:
            raise ValidationError("page must be at least 1", error_code="INVALID_PAGE")
        limit = min(limit, MAX_LIMIT)
        selected = parse_activity_types(types)

        batches = await asyncio.gather(*[
            self.normalizers[t].fetch_recent(user_id, limit) for t in selected
        ])

        merged: List[ActivityRecord] = [record for batch in batches for record in batch]
        merged.sort(key=lambda r: r.occurred_at, reverse=True)

        offset = (page - 1) * limit
        return ActivityPage(
            activities=merged[offset:offset + limit],
            total=len(merged),
            page=page,
            limit=limit,
            total_pages=math.ceil(len(merged) / limit),
        )

    async def get_activity_summary(
        self,
        user_id: int,
        period: Union[str, SummaryPeriod, None] = SummaryPeriod.WEEK,
    ) -> ActivitySummary:
        """
        Count activity over a trailing window ending now.

        Projects count once as started (by creation) and once as completed
        (by completion date) when both fall in the window.
        """
        period = parse_period(period)
        start = period.start_from(self.clock())

        yarn, patterns, started, completed, progress = await asyncio.gather(
            self.yarn_repo.count_since(user_id, start),
            self.pattern_repo.count_since(user_id, start),
            self.project_repo.count_since(user_id, start),
            self.project_repo.count_completed_since(user_id, start),
            self.progress_repo.count_since(user_id, start),
        )
        return ActivitySummary(
            period=period,
            start_date=start,
            yarn_added=yarn,
            patterns_added=patterns,
            projects_started=started,
            projects_completed=completed,
            progress_updates=progress,
        )

    async def get_activity_calendar(self, user_id: int, year: int, month: int) -> ActivityCalendar:
        """
        Bucket a month's activity by UTC calendar day.

        Args:
            user_id: Owning user
            year: Calendar year
            month: Calendar month, 1-12

        Returns:
            Entries keyed by ISO date
        """
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12", error_code="INVALID_MONTH")
        if not 1 <= year <= 9998:
            raise ValidationError("year is out of range", error_code="INVALID_YEAR")

        start = datetime(year, month, 1, tzinfo=timezone.utc)
        end = datetime(year + month // 12, month % 12 + 1, 1, tzinfo=timezone.utc)

        yarn, patterns, started, completed, progress = await asyncio.gather(
            self.yarn_repo.find_in_range(user_id, start, end),
            self.pattern_repo.find_in_range(user_id, start, end),
            self.project_repo.find_in_range(user_id, start, end),
            self.project_repo.find_completed_in_range(user_id, start, end),
            self.progress_repo.find_in_range(user_id, start, end),
        )

        calendar = ActivityCalendar(year=year, month=month)
        for y in yarn:
            calendar.add(CalendarEntry("yarn", y.id, f"Added yarn: {y.colorway}", y.created_at))
        for p in patterns:
            calendar.add(CalendarEntry("pattern", p.id, f"Added pattern: {p.title}", p.created_at))
        for p in started:
            calendar.add(CalendarEntry("project", p.id, f"Started: {p.project_name}", p.created_at))
        for p in completed:
            calendar.add(CalendarEntry(
                "project-complete", p.id, f"Completed: {p.project_name}", p.completion_date
            ))
        for p in progress:
            name = p.project_name or f"project {p.project_id}"
            calendar.add(CalendarEntry("progress", p.id, f"Progress: {name}", p.created_at))
        return calendar

    async def build_activity_log(
        self,
        user_id: int,
        user_label: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> ActivityLog:
        """
        Collect the yarn, patterns and projects created in ``[start, end)``.

        Either bound may be omitted.
        """
        if start is not None and end is not None and start > end:
            raise ValidationError("startDate must not be after endDate", error_code="INVALID_RANGE")

        yarn, patterns, projects = await asyncio.gather(
            self.yarn_repo.find_all(user_id, start, end),
            self.pattern_repo.find_all(user_id, start, end),
            self.project_repo.find_all(user_id, start, end),
        )

        return ActivityLog(
            export_date=self.clock(),
            user=user_label,
            start=start,
            end=end,
            yarn=[
                {
                    "date": isoformat(y.created_at),
                    "brand": y.brand_name,
                    "line": y.line_name,
                    "colorway": y.colorway,
                    "skeins": y.skeins_total,
                    "yardage": y.total_yardage,
                }
                for y in yarn
            ],
            patterns=[
                {
                    "date": isoformat(p.created_at),
                    "title": p.title,
                    "designer": p.designer_name,
                    "craft_type": p.craft_type,
                    "difficulty": p.difficulty_level,
                }
                for p in patterns
            ],
            projects=[
                {
                    "date": isoformat(p.created_at),
                    "name": p.project_name,
                    "pattern": p.pattern_title,
                    "status": p.status.value,
                    "startDate": p.start_date.isoformat() if p.start_date else None,
                    "completionDate": isoformat(p.completion_date),
                }
                for p in projects
            ],
        )
