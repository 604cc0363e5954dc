"""
Dashboard statistics.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Union

from ..data.base import PatternRepository, ProjectRepository, YarnRepository
from ..exceptions import ValidationError
from ..models.activity import shift_months
from ..models.base import isoformat, utc_now
from ..models.entities import ProjectStatus

RECENT_WINDOW_DAYS = 30
COMPLETION_PERIODS = {"month": 1, "quarter": 3, "year": 12}


class DashboardStats:
    """Totals shown on the dashboard landing page."""

    def __init__(
        self,
        yarn_repo: YarnRepository,
        pattern_repo: PatternRepository,
        project_repo: ProjectRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.yarn_repo = yarn_repo
        self.pattern_repo = pattern_repo
        self.project_repo = project_repo
        self.clock = clock

    async def get_stats(self, user_id: int) -> Dict[str, Any]:
        now = self.clock()
        since = now - timedelta(days=RECENT_WINDOW_DAYS)

        (
            total_yarn,
            total_patterns,
            by_status,
            yarn_value,
            by_weight,
            new_yarn,
            new_patterns,
            new_projects,
        ) = await asyncio.gather(
            self.yarn_repo.count(user_id),
            self.pattern_repo.count(user_id),
            self.project_repo.count_by_status(user_id),
            self.yarn_repo.total_value(user_id),
            self.yarn_repo.count_by_weight(user_id),
            self.yarn_repo.count_since(user_id, since),
            self.pattern_repo.count_since(user_id, since),
            self.project_repo.count_since(user_id, since),
        )

        return {
            "totalYarn": total_yarn,
            "totalPatterns": total_patterns,
            "activeProjects": by_status.get(ProjectStatus.ACTIVE.value, 0),
            "completedProjects": by_status.get(ProjectStatus.COMPLETED.value, 0),
            "totalProjects": sum(by_status.values()),
            "yarnValue": f"{yarn_value:.2f}",
            "yarnByWeight": [
                {"weight_category": weight, "count": count}
                for weight, count in by_weight.items()
            ],
            "recentActivity": {
                "newYarn": new_yarn,
                "newPatterns": new_patterns,
                "newProjects": new_projects,
            },
            "lastUpdated": isoformat(now),
        }

    async def get_completion_rate(self, user_id: int, period: Union[str, None] = "year") -> Dict[str, Any]:
        """
        Share of projects started in the period that were completed in it.

        Args:
            user_id: Owning user
            period: One of month, quarter or year

        Returns:
            Started and completed counts with the rate as a percentage
        """
        period = period or "year"
        if period not in COMPLETION_PERIODS:
            raise ValidationError(f"Unknown period: {period}", error_code="INVALID_PERIOD")

        start = shift_months(self.clock(), -COMPLETION_PERIODS[period])
        started, completed = await asyncio.gather(
            self.project_repo.count_since(user_id, start),
            self.project_repo.count_completed_since(user_id, start),
        )
        rate = round(completed / started * 100, 1) if started > 0 else 0

        return {
            "period": period,
            "projectsStarted": started,
            "projectsCompleted": completed,
            "completionRate": rate,
        }
