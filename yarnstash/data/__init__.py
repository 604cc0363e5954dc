"""
Data access layer for YarnStash.

Example Usage:
    ```python
    from yarnstash.data import initialize_repositories, run_migrations

    await run_migrations("data/yarnstash.db")
    factory = initialize_repositories(backend="sqlite", db_path="data/yarnstash.db")

    yarn_repo = await factory.get_yarn_repository()
    recent = await yarn_repo.find_recent(user_id=1, limit=20)
    ```
"""

from .base import (
    DatabaseConnection,
    EntityRepository,
    YarnRepository,
    PatternRepository,
    ProjectRepository,
    ProgressRepository,
    SyncLogRepository,
    DriveTokenRepository,
    ShoppingListRepository,
)
from .sqlite import (
    SQLiteConnection,
    SQLiteYarnRepository,
    SQLitePatternRepository,
    SQLiteProjectRepository,
    SQLiteProgressRepository,
    SQLiteSyncLogRepository,
    SQLiteDriveTokenRepository,
    SQLiteShoppingListRepository,
    format_timestamp,
)
from .repositories import (
    RepositoryFactory,
    initialize_repositories,
    get_repository_factory,
)
from .migrations import MigrationRunner, run_migrations

__all__ = [
    "DatabaseConnection",
    "EntityRepository",
    "YarnRepository",
    "PatternRepository",
    "ProjectRepository",
    "ProgressRepository",
    "SyncLogRepository",
    "DriveTokenRepository",
    "ShoppingListRepository",
    "SQLiteConnection",
    "SQLiteYarnRepository",
    "SQLitePatternRepository",
    "SQLiteProjectRepository",
    "SQLiteProgressRepository",
    "SQLiteSyncLogRepository",
    "SQLiteDriveTokenRepository",
    "SQLiteShoppingListRepository",
    "format_timestamp",
    "RepositoryFactory",
    "initialize_repositories",
    "get_repository_factory",
    "MigrationRunner",
    "run_migrations",
]
