"""
Shared fixtures for unit tests.
"""

import os
import tempfile
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import List, Optional

import pytest
import pytest_asyncio

from yarnstash.data import (
    SQLiteConnection,
    SQLitePatternRepository,
    SQLiteProgressRepository,
    SQLiteProjectRepository,
    SQLiteShoppingListRepository,
    SQLiteSyncLogRepository,
    SQLiteYarnRepository,
    format_timestamp,
    run_migrations,
)
from yarnstash.data.base import SyncLogRepository
from yarnstash.models import SyncLogEntry


def ts(year, month, day, hour=0, minute=0, second=0) -> datetime:
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)


class Seeder:
    """Inserts rows straight into the test database."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def _insert(self, query: str, params: tuple) -> int:
        cursor = await self.connection.execute(query, params)
        return cursor.lastrowid

    async def user(self, email: str) -> int:
        return await self._insert(
            "INSERT INTO users (email, created_at) VALUES (?, ?)",
            (email, format_timestamp(ts(2024, 1, 1))),
        )

    async def yarn_line(self, brand: str, line: str, weight: Optional[str] = None) -> int:
        brand_id = await self._insert("INSERT INTO yarn_brands (name) VALUES (?)", (brand,))
        return await self._insert(
            "INSERT INTO yarn_lines (brand_id, name, weight_category) VALUES (?, ?, ?)",
            (brand_id, line, weight),
        )

    async def yarn(
        self,
        user_id: int,
        colorway: str,
        created_at: datetime,
        yarn_line_id: Optional[int] = None,
        skeins: float = 1,
        yardage: Optional[int] = None,
        price: Optional[float] = None,
    ) -> int:
        return await self._insert(
            """
            INSERT INTO yarn_inventory (
                user_id, yarn_line_id, colorway, skeins_total, skeins_remaining,
                total_yardage, purchase_price, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (user_id, yarn_line_id, colorway, skeins, skeins, yardage, price,
             format_timestamp(created_at)),
        )

    async def designer(self, name: str) -> int:
        return await self._insert("INSERT INTO pattern_designers (name) VALUES (?)", (name,))

    async def pattern(
        self,
        user_id: int,
        title: str,
        created_at: datetime,
        designer_id: Optional[int] = None,
        local_file_path: Optional[str] = None,
        original_filename: Optional[str] = None,
        drive_file_id: Optional[str] = None,
    ) -> int:
        return await self._insert(
            """
            INSERT INTO patterns (
                user_id, title, designer_id, craft_type, local_file_path,
                original_filename, drive_file_id, created_at
            ) VALUES (?, ?, ?, 'knit', ?, ?, ?, ?)
            """,
            (user_id, title, designer_id, local_file_path, original_filename,
             drive_file_id, format_timestamp(created_at)),
        )

    async def project(
        self,
        user_id: int,
        name: str,
        created_at: datetime,
        status: str = "active",
        completion_date: Optional[datetime] = None,
        pattern_id: Optional[int] = None,
    ) -> int:
        return await self._insert(
            """
            INSERT INTO projects (
                user_id, pattern_id, project_name, status, completion_date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, pattern_id, name, status, format_timestamp(completion_date),
             format_timestamp(created_at)),
        )

    async def progress(
        self,
        project_id: int,
        created_at: datetime,
        value: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> int:
        return await self._insert(
            """
            INSERT INTO project_progress (
                project_id, progress_type, progress_value, notes, created_at
            ) VALUES (?, 'rows_completed', ?, ?, ?)
            """,
            (project_id, value, notes, format_timestamp(created_at)),
        )

    async def shopping_list(self, user_id: int, name: str, created_at: datetime) -> int:
        return await self._insert(
            "INSERT INTO shopping_lists (user_id, name, created_at) VALUES (?, ?, ?)",
            (user_id, name, format_timestamp(created_at)),
        )

    async def shopping_item(self, list_id: int, item_type: str, **fields) -> int:
        columns = ["shopping_list_id", "item_type", *fields]
        placeholders = ", ".join("?" for _ in columns)
        return await self._insert(
            f"INSERT INTO shopping_list_items ({', '.join(columns)}) VALUES ({placeholders})",
            (list_id, item_type, *fields.values()),
        )


class MemorySyncLog(SyncLogRepository):
    """Sync log kept in a list."""

    def __init__(self):
        self.entries: List[SyncLogEntry] = []

    async def add(self, entry: SyncLogEntry) -> int:
        entry.id = len(self.entries) + 1
        self.entries.append(entry)
        return entry.id

    async def find_by_user(self, user_id: int, limit: int = 50) -> List[SyncLogEntry]:
        mine = [e for e in self.entries if e.user_id == user_id]
        return list(reversed(mine))[:limit]


@pytest.fixture
def db_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield os.path.join(tmpdir, "test.db")


@pytest_asyncio.fixture
async def connection(db_path):
    await run_migrations(db_path)
    conn = SQLiteConnection(db_path, pool_size=2)
    await conn.connect()
    yield conn
    await conn.disconnect()


@pytest_asyncio.fixture
async def seed(connection):
    seeder = Seeder(connection)
    await seeder.user("alice@example.com")
    await seeder.user("bob@example.com")
    return seeder


@pytest.fixture
def repos(connection):
    return SimpleNamespace(
        yarn=SQLiteYarnRepository(connection),
        pattern=SQLitePatternRepository(connection),
        project=SQLiteProjectRepository(connection),
        progress=SQLiteProgressRepository(connection),
        sync_log=SQLiteSyncLogRepository(connection),
        shopping=SQLiteShoppingListRepository(connection),
    )


@pytest.fixture
def sync_log():
    return MemorySyncLog()
