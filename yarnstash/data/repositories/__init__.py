"""
Concrete repository implementations.

This module provides the repository factory and module level accessors
used throughout the application.
"""

from typing import Optional

from ..base import (
    DriveTokenRepository,
    PatternRepository,
    ProgressRepository,
    ProjectRepository,
    ShoppingListRepository,
    SyncLogRepository,
    YarnRepository,
)
from ..sqlite import (
    SQLiteConnection,
    SQLiteDriveTokenRepository,
    SQLitePatternRepository,
    SQLiteProgressRepository,
    SQLiteProjectRepository,
    SQLiteShoppingListRepository,
    SQLiteSyncLogRepository,
    SQLiteYarnRepository,
)


class RepositoryFactory:
    """Factory for creating repository instances."""

    def __init__(self, backend: str = "sqlite", **config):
        """
        Initialize repository factory.

        Args:
            backend: Database backend to use (only 'sqlite' is supported)
            **config: Backend-specific configuration options
        """
        if backend != "sqlite":
            raise ValueError(f"Unsupported backend: {backend}")
        self.backend = backend
        self.config = config
        self._connection: Optional[SQLiteConnection] = None

    async def get_connection(self) -> SQLiteConnection:
        """Get or create database connection."""
        if self._connection is None:
            db_path = self.config.get("db_path", "data/yarnstash.db")
            pool_size = self.config.get("pool_size", 5)
            self._connection = SQLiteConnection(db_path, pool_size)
            await self._connection.connect()
        return self._connection

    async def get_yarn_repository(self) -> YarnRepository:
        return SQLiteYarnRepository(await self.get_connection())

    async def get_pattern_repository(self) -> PatternRepository:
        return SQLitePatternRepository(await self.get_connection())

    async def get_project_repository(self) -> ProjectRepository:
        return SQLiteProjectRepository(await self.get_connection())

    async def get_progress_repository(self) -> ProgressRepository:
        return SQLiteProgressRepository(await self.get_connection())

    async def get_sync_log_repository(self) -> SyncLogRepository:
        return SQLiteSyncLogRepository(await self.get_connection())

    async def get_drive_token_repository(self) -> DriveTokenRepository:
        return SQLiteDriveTokenRepository(await self.get_connection())

    async def get_shopping_list_repository(self) -> ShoppingListRepository:
        return SQLiteShoppingListRepository(await self.get_connection())

    async def close(self) -> None:
        """Close database connections."""
        if self._connection:
            await self._connection.disconnect()
            self._connection = None


# Singleton instance for easy access
_default_factory: Optional[RepositoryFactory] = None


def initialize_repositories(backend: str = "sqlite", **config) -> RepositoryFactory:
    """
    Initialize the default repository factory.

    Args:
        backend: Database backend to use
        **config: Backend-specific configuration

    Returns:
        Initialized repository factory
    """
    global _default_factory
    _default_factory = RepositoryFactory(backend, **config)
    return _default_factory


def get_repository_factory() -> RepositoryFactory:
    """
    Get the default repository factory instance.

    Raises:
        RuntimeError: If repositories have not been initialized
    """
    if _default_factory is None:
        raise RuntimeError(
            "Repositories not initialized. Call initialize_repositories() first."
        )
    return _default_factory
