"""
Tests for the activity aggregator and dashboard statistics.
"""

import math
from datetime import timedelta

import pytest

from yarnstash.activity import ActivityAggregator, DashboardStats
from yarnstash.activity.aggregator import MAX_LIMIT, parse_activity_types
from yarnstash.exceptions import ValidationError
from yarnstash.models import ActivityType, SummaryPeriod

from conftest import ts

NOW = ts(2024, 6, 15, 12)


def make_aggregator(repos):
    return ActivityAggregator(
        repos.yarn, repos.pattern, repos.project, repos.progress, clock=lambda: NOW
    )


class TestRecentActivity:
    """Tests for the merged activity feed."""

    @pytest.mark.asyncio
    async def test_merges_families_newest_first(self, seed, repos):
        yarn_ids = [
            await seed.yarn(1, f"Color {i}", NOW - timedelta(hours=1)) for i in range(3)
        ]
        await seed.pattern(1, "Shawl", NOW - timedelta(hours=2))
        project_id = await seed.project(
            1, "Sweater", NOW - timedelta(days=30), status="completed",
            completion_date=NOW - timedelta(minutes=30),
        )

        page = await make_aggregator(repos).get_recent_activity(1, limit=10)

        assert page.total == 5
        assert page.total_pages == 1
        assert [a.type for a in page.activities] == [
            ActivityType.PROJECT,
            ActivityType.YARN,
            ActivityType.YARN,
            ActivityType.YARN,
            ActivityType.PATTERN,
        ]
        assert page.activities[0].entity_id == project_id
        assert page.activities[0].action == "completed"
        # equal timestamps keep fetch order (newest id first)
        assert [a.entity_id for a in page.activities[1:4]] == sorted(yarn_ids, reverse=True)

    @pytest.mark.asyncio
    async def test_equal_timestamps_keep_family_order(self, seed, repos):
        moment = NOW - timedelta(hours=1)
        project_id = await seed.project(1, "Hat", moment)
        await seed.progress(project_id, moment, value=10)
        await seed.pattern(1, "Hat Pattern", moment)
        await seed.yarn(1, "Teal", moment)

        page = await make_aggregator(repos).get_recent_activity(1)

        assert [a.type for a in page.activities] == [
            ActivityType.YARN,
            ActivityType.PATTERN,
            ActivityType.PROJECT,
            ActivityType.PROGRESS,
        ]

    @pytest.mark.asyncio
    async def test_pagination(self, seed, repos):
        for i in range(5):
            await seed.yarn(1, f"Color {i}", NOW - timedelta(hours=i))

        aggregator = make_aggregator(repos)
        first = await aggregator.get_recent_activity(1, limit=2, page=1)
        third = await aggregator.get_recent_activity(1, limit=2, page=3)
        beyond = await aggregator.get_recent_activity(1, limit=2, page=4)

        assert [a.description for a in first.activities] == [
            "Added Color 0 to inventory",
            "Added Color 1 to inventory",
        ]
        # each family contributes at most `limit` rows to the merge
        assert first.total == 2
        assert third.activities == []
        assert beyond.total_pages == 1

    @pytest.mark.asyncio
    async def test_pages_concatenate_to_merged_feed(self, seed, repos):
        yarn, pattern, project = [], [], []
        for i in range(3):
            yarn.append(await seed.yarn(1, f"Color {i}", NOW - timedelta(hours=3 * i)))
            pattern.append(await seed.pattern(1, f"Pattern {i}", NOW - timedelta(hours=3 * i + 1)))
            project.append(await seed.project(1, f"Project {i}", NOW - timedelta(hours=3 * i + 2)))

        aggregator = make_aggregator(repos)
        first = await aggregator.get_recent_activity(1, limit=2)

        # the oldest row of each family falls outside the per-family cap
        assert first.total == 6
        assert first.total_pages == math.ceil(first.total / 2)

        walked = []
        for number in range(1, first.total_pages + 1):
            page = await aggregator.get_recent_activity(1, limit=2, page=number)
            walked.extend(a.id for a in page.activities)

        assert walked == [
            f"yarn-{yarn[0]}", f"pattern-{pattern[0]}", f"project-{project[0]}",
            f"yarn-{yarn[1]}", f"pattern-{pattern[1]}", f"project-{project[1]}",
        ]

    @pytest.mark.asyncio
    async def test_type_filter(self, seed, repos):
        await seed.yarn(1, "Teal", NOW - timedelta(hours=1))
        await seed.pattern(1, "Shawl", NOW - timedelta(hours=2))

        page = await make_aggregator(repos).get_recent_activity(1, types=["pattern"])

        assert page.total == 1
        assert page.activities[0].type == ActivityType.PATTERN
        assert page.activities[0].id.startswith("pattern-")

    @pytest.mark.asyncio
    async def test_other_users_are_invisible(self, seed, repos):
        await seed.yarn(2, "Bob's Yarn", NOW - timedelta(hours=1))
        other = await seed.project(2, "Bob's Project", NOW - timedelta(hours=1))
        await seed.progress(other, NOW - timedelta(minutes=5))

        page = await make_aggregator(repos).get_recent_activity(1)

        assert page.total == 0
        assert page.total_pages == 0
        assert page.activities == []

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, seed, repos):
        page = await make_aggregator(repos).get_recent_activity(1, limit=500)
        assert page.limit == MAX_LIMIT

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"limit": 0},
        {"page": 0},
        {"types": ["socks"]},
    ])
    async def test_rejects_bad_input(self, repos, kwargs):
        with pytest.raises(ValidationError):
            await make_aggregator(repos).get_recent_activity(1, **kwargs)

    def test_type_filter_uses_registry_order(self):
        assert parse_activity_types(["progress", "yarn"]) == [
            ActivityType.YARN,
            ActivityType.PROGRESS,
        ]


class TestActivitySummary:
    """Tests for period summaries."""

    @pytest.mark.asyncio
    async def test_week_counts(self, seed, repos):
        await seed.yarn(1, "Teal", NOW - timedelta(days=2))
        await seed.yarn(1, "Old", NOW - timedelta(days=10))
        await seed.pattern(1, "Shawl", NOW - timedelta(days=1))
        project_id = await seed.project(
            1, "Sweater", NOW - timedelta(days=3), status="completed",
            completion_date=NOW - timedelta(days=1),
        )
        await seed.progress(project_id, NOW - timedelta(days=2))

        summary = await make_aggregator(repos).get_activity_summary(1)
        data = summary.to_dict()

        assert data["period"] == "week"
        assert data["startDate"] == (NOW - timedelta(days=7)).isoformat()
        assert data["summary"] == {
            "yarnAdded": 1,
            "patternsAdded": 1,
            "projectsStarted": 1,
            "projectsCompleted": 1,
            "progressUpdates": 1,
            "totalActivities": 5,
        }

    @pytest.mark.asyncio
    async def test_year_window(self, seed, repos):
        await seed.yarn(1, "Old", NOW - timedelta(days=200))
        summary = await make_aggregator(repos).get_activity_summary(1, SummaryPeriod.YEAR)
        assert summary.yarn_added == 1
        assert summary.start_date == ts(2023, 6, 15, 12)

    @pytest.mark.asyncio
    async def test_unknown_period(self, repos):
        with pytest.raises(ValidationError):
            await make_aggregator(repos).get_activity_summary(1, "fortnight")


class TestActivityCalendar:
    """Tests for the monthly calendar."""

    @pytest.mark.asyncio
    async def test_buckets_by_utc_day(self, seed, repos):
        await seed.yarn(1, "Teal", ts(2024, 3, 5, 23, 59))
        await seed.pattern(1, "Shawl", ts(2024, 3, 5, 8))
        project_id = await seed.project(
            1, "Sweater", ts(2024, 2, 1), status="completed",
            completion_date=ts(2024, 3, 31, 22),
        )
        await seed.progress(project_id, ts(2024, 3, 10))
        await seed.yarn(1, "April", ts(2024, 4, 1))

        calendar = await make_aggregator(repos).get_activity_calendar(1, 2024, 3)
        days = calendar.to_dict()["calendar"]

        assert list(days) == ["2024-03-05", "2024-03-10", "2024-03-31"]
        assert {e["title"] for e in days["2024-03-05"]} == {
            "Added yarn: Teal",
            "Added pattern: Shawl",
        }
        assert days["2024-03-10"][0]["title"] == "Progress: Sweater"
        assert days["2024-03-31"][0]["type"] == "project-complete"

    @pytest.mark.asyncio
    async def test_december_rolls_into_next_year(self, seed, repos):
        await seed.yarn(1, "Winter", ts(2024, 12, 31, 23))
        await seed.yarn(1, "New Year", ts(2025, 1, 1))

        calendar = await make_aggregator(repos).get_activity_calendar(1, 2024, 12)

        assert list(calendar.days) == ["2024-12-31"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("year,month", [(2024, 0), (2024, 13), (0, 5)])
    async def test_rejects_bad_month(self, repos, year, month):
        with pytest.raises(ValidationError):
            await make_aggregator(repos).get_activity_calendar(1, year, month)


class TestActivityLog:
    """Tests for the export activity log."""

    @pytest.mark.asyncio
    async def test_range_and_joined_fields(self, seed, repos):
        line_id = await seed.yarn_line("Malabrigo", "Rios", "worsted")
        await seed.yarn(1, "Teal", ts(2024, 3, 5), yarn_line_id=line_id, skeins=2, yardage=420)
        await seed.yarn(1, "Plain", ts(2024, 3, 6))
        await seed.yarn(1, "Too Early", ts(2024, 2, 1))

        log = await make_aggregator(repos).build_activity_log(
            1, "alice@example.com", start=ts(2024, 3, 1), end=ts(2024, 4, 1)
        )

        assert [y["colorway"] for y in log.yarn] == ["Plain", "Teal"]
        assert log.yarn[0]["brand"] is None
        assert log.yarn[1]["brand"] == "Malabrigo"
        assert log.yarn[1]["line"] == "Rios"
        assert log.to_dict()["summary"]["totalYarnAdded"] == 2

    @pytest.mark.asyncio
    async def test_open_range(self, seed, repos):
        await seed.project(1, "Hat", ts(2020, 1, 1), status="completed", completion_date=ts(2020, 2, 1))
        log = await make_aggregator(repos).build_activity_log(1, "alice")

        data = log.to_dict()
        assert data["period"] == {"start": "beginning", "end": "present"}
        assert data["summary"]["totalProjectsCompleted"] == 1

    @pytest.mark.asyncio
    async def test_start_after_end(self, repos):
        with pytest.raises(ValidationError):
            await make_aggregator(repos).build_activity_log(
                1, "alice", start=ts(2024, 5, 1), end=ts(2024, 4, 1)
            )


class TestDashboardStats:
    """Tests for dashboard totals."""

    @pytest.mark.asyncio
    async def test_stats(self, seed, repos):
        line_id = await seed.yarn_line("Cascade", "220", "worsted")
        await seed.yarn(1, "Red", NOW - timedelta(days=1), yarn_line_id=line_id, price=12.5)
        await seed.yarn(1, "Blue", NOW - timedelta(days=60), price=7.25)
        await seed.pattern(1, "Shawl", NOW - timedelta(days=90))
        await seed.project(1, "A", NOW - timedelta(days=2), status="active")
        await seed.project(1, "B", NOW - timedelta(days=40), status="completed",
                           completion_date=NOW - timedelta(days=5))

        stats = await DashboardStats(
            repos.yarn, repos.pattern, repos.project, clock=lambda: NOW
        ).get_stats(1)

        assert stats["totalYarn"] == 2
        assert stats["totalPatterns"] == 1
        assert stats["activeProjects"] == 1
        assert stats["completedProjects"] == 1
        assert stats["totalProjects"] == 2
        assert stats["yarnValue"] == "19.75"
        assert {w["weight_category"]: w["count"] for w in stats["yarnByWeight"]} == {
            "worsted": 1,
            "unknown": 1,
        }
        assert stats["recentActivity"] == {"newYarn": 1, "newPatterns": 0, "newProjects": 1}

    @pytest.mark.asyncio
    async def test_completion_rate(self, seed, repos):
        await seed.project(1, "A", NOW - timedelta(days=10), status="completed",
                           completion_date=NOW - timedelta(days=1))
        await seed.project(1, "B", NOW - timedelta(days=10))
        await seed.project(1, "C", NOW - timedelta(days=12))

        dashboard = DashboardStats(repos.yarn, repos.pattern, repos.project, clock=lambda: NOW)
        rate = await dashboard.get_completion_rate(1, "month")

        assert rate == {
            "period": "month",
            "projectsStarted": 3,
            "projectsCompleted": 1,
            "completionRate": 33.3,
        }

    @pytest.mark.asyncio
    async def test_completion_rate_without_projects(self, seed, repos):
        dashboard = DashboardStats(repos.yarn, repos.pattern, repos.project, clock=lambda: NOW)
        rate = await dashboard.get_completion_rate(1)
        assert rate["completionRate"] == 0

        with pytest.raises(ValidationError):
            await dashboard.get_completion_rate(1, "decade")
