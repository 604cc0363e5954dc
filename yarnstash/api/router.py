"""
Main API router.
"""

import logging

from fastapi import APIRouter

from .auth import ApiAuth, set_auth_instance
from .routes import activity_router, dashboard_router, drive_router, shopping_router

logger = logging.getLogger(__name__)


def create_api_router(config) -> APIRouter:
    """Create the API router.

    Route handlers reach their services through ``routes.set_services``,
    which the application calls once the database is ready.

    Args:
        config: Application configuration

    Returns:
        FastAPI router with all endpoints under /api/v1
    """
    if config.api.jwt_secret == "change-in-production":
        logger.warning("JWT_SECRET not set. Using the development default.")

    set_auth_instance(ApiAuth(
        jwt_secret=config.api.jwt_secret,
        jwt_expiration_hours=config.api.jwt_expiration_hours,
    ))

    router = APIRouter(prefix="/api/v1")
    router.include_router(activity_router, tags=["Activity"])
    router.include_router(dashboard_router, tags=["Dashboard"])
    router.include_router(drive_router, tags=["Drive"])
    router.include_router(shopping_router, tags=["Shopping Lists"])
    return router
