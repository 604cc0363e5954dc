"""
Dashboard statistics API routes.
"""

from fastapi import APIRouter, Depends, Query

from . import get_dashboard_stats
from ..auth import get_current_user

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
async def get_stats(user: dict = Depends(get_current_user)):
    stats = await get_dashboard_stats()
    return await stats.get_stats(user["user_id"])


@router.get("/completion-rate")
async def get_completion_rate(
    period: str = Query("year"),
    user: dict = Depends(get_current_user),
):
    stats = await get_dashboard_stats()
    return await stats.get_completion_rate(user["user_id"], period)
