"""
Activity feed API routes.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query

from . import export_response, get_activity_aggregator, get_formatter
from ..auth import get_current_user
from ...exceptions import ValidationError
from ...export import ActivityLogDocument, parse_export_kind
from ...models.base import parse_datetime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activity", tags=["activity"])


def _parse_bound(value: Optional[str], name: str, inclusive_day: bool = False) -> Optional[datetime]:
    """Parse a date query parameter. A date-only end bound covers that whole day."""
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date", error_code="INVALID_DATE")
    if inclusive_day and len(value.strip()) == 10:
        parsed += timedelta(days=1)
    return parsed


@router.get("/recent")
async def get_recent_activity(
    limit: int = Query(20),
    page: int = Query(1),
    type: Optional[str] = Query(None, description="Comma separated activity types"),
    user: dict = Depends(get_current_user),
):
    """Merged, paginated feed of recent activity."""
    types = [t.strip() for t in type.split(",") if t.strip()] if type else None
    aggregator = await get_activity_aggregator()
    result = await aggregator.get_recent_activity(user["user_id"], limit=limit, page=page, types=types)
    return result.to_dict()


@router.get("/summary")
async def get_activity_summary(
    period: str = Query("week"),
    user: dict = Depends(get_current_user),
):
    aggregator = await get_activity_aggregator()
    summary = await aggregator.get_activity_summary(user["user_id"], period)
    return summary.to_dict()


@router.get("/calendar")
async def get_activity_calendar(
    year: int = Query(...),
    month: int = Query(...),
    user: dict = Depends(get_current_user),
):
    aggregator = await get_activity_aggregator()
    calendar = await aggregator.get_activity_calendar(user["user_id"], year, month)
    return calendar.to_dict()


@router.get("/export")
async def export_activity_log(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    format: str = Query("json"),
    user: dict = Depends(get_current_user),
):
    """Download the activity log as JSON, CSV or text."""
    kind = parse_export_kind(format)
    start = _parse_bound(startDate, "startDate")
    end = _parse_bound(endDate, "endDate", inclusive_day=True)
    label = user.get("email") or f"user {user['user_id']}"

    aggregator = await get_activity_aggregator()
    log = await aggregator.build_activity_log(user["user_id"], label, start, end)
    result = get_formatter().format(ActivityLogDocument(log), kind)
    logger.info(f"Exported activity log for user {user['user_id']} as {kind.value}")
    return export_response(result)
