"""
API route modules.
"""

from typing import Optional

from fastapi import Response

from ...activity import ActivityAggregator, DashboardStats
from ...backup import BackupAssembler, PatternBatchUploader, RetentionManager
from ...config.settings import AppConfig
from ...data.repositories import RepositoryFactory
from ...export import ExportFormatter, ExportResult
from ...storage import GoogleOAuthFlow, StoreProvider

# Service references (set at application startup)
_repository_factory: Optional[RepositoryFactory] = None
_config: Optional[AppConfig] = None
_oauth_flow: Optional[GoogleOAuthFlow] = None
_store_provider: Optional[StoreProvider] = None
_formatter = ExportFormatter()
_retention = RetentionManager()


def set_services(
    repository_factory=None,
    config=None,
    oauth_flow=None,
    store_provider=None,
):
    """Set service references for route handlers."""
    global _repository_factory, _config, _oauth_flow, _store_provider
    _repository_factory = repository_factory
    _config = config
    _oauth_flow = oauth_flow
    _store_provider = store_provider


def _require(service, name: str):
    if service is None:
        raise RuntimeError(f"{name} not initialized")
    return service


def get_repository_factory() -> RepositoryFactory:
    return _require(_repository_factory, "Repository factory")


def get_config() -> AppConfig:
    return _require(_config, "Configuration")


def get_oauth_flow() -> GoogleOAuthFlow:
    return _require(_oauth_flow, "OAuth flow")


def get_store_provider() -> StoreProvider:
    return _require(_store_provider, "Store provider")


def get_formatter() -> ExportFormatter:
    return _formatter


def get_retention_manager() -> RetentionManager:
    return _retention


async def get_activity_aggregator() -> ActivityAggregator:
    factory = get_repository_factory()
    return ActivityAggregator(
        await factory.get_yarn_repository(),
        await factory.get_pattern_repository(),
        await factory.get_project_repository(),
        await factory.get_progress_repository(),
    )


async def get_dashboard_stats() -> DashboardStats:
    factory = get_repository_factory()
    return DashboardStats(
        await factory.get_yarn_repository(),
        await factory.get_pattern_repository(),
        await factory.get_project_repository(),
    )


async def get_backup_assembler() -> BackupAssembler:
    factory = get_repository_factory()
    return BackupAssembler(
        await factory.get_yarn_repository(),
        await factory.get_pattern_repository(),
        await factory.get_project_repository(),
    )


async def get_pattern_uploader() -> PatternBatchUploader:
    factory = get_repository_factory()
    return PatternBatchUploader(
        await factory.get_pattern_repository(),
        get_config().backup.pattern_files_dir,
    )


def export_response(result: ExportResult) -> Response:
    """Wrap a rendered export as a file download."""
    return Response(
        content=result.body,
        media_type=result.content_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


# Import routers
from .activity import router as activity_router
from .dashboard import router as dashboard_router
from .drive import router as drive_router
from .shopping import router as shopping_router

__all__ = [
    "set_services",
    "activity_router",
    "dashboard_router",
    "drive_router",
    "shopping_router",
]
