"""
SQLite implementation of data repositories using aiosqlite.

This module provides SQLite support with connection pooling and async
database operations. Timestamps are stored as fixed-width ISO-8601 UTC
strings so that lexicographic comparison matches chronological order.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from .base import (
    DatabaseConnection,
    DriveTokenRepository,
    PatternRepository,
    ProgressRepository,
    ProjectRepository,
    ShoppingListRepository,
    SyncLogRepository,
    YarnRepository,
)
from ..models.base import parse_datetime
from ..models.entities import (
    Pattern,
    ProgressType,
    Project,
    ProjectProgress,
    ProjectStatus,
    YarnStock,
)
from ..models.shopping_list import ItemType, ShoppingList, ShoppingListItem
from ..models.sync_log import SyncLogEntry


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as a fixed-width UTC string for storage."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


class SQLiteConnection(DatabaseConnection):
    """SQLite database connection with connection pooling."""

    def __init__(self, db_path: str, pool_size: int = 5):
        self.db_path = db_path
        self.pool_size = pool_size
        self._connections: List[aiosqlite.Connection] = []
        self._available: asyncio.Queue = asyncio.Queue(maxsize=pool_size)
        self._lock = asyncio.Lock()
        self._initialized = False

    async def connect(self) -> None:
        """Establish database connection pool."""
        async with self._lock:
            if self._initialized:
                return

            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await aiosqlite.connect(self.db_path)
                conn.row_factory = aiosqlite.Row
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA foreign_keys=ON")
                self._connections.append(conn)
                await self._available.put(conn)

            self._initialized = True

    async def disconnect(self) -> None:
        """Close all database connections."""
        async with self._lock:
            if not self._initialized:
                return

            for conn in self._connections:
                await conn.close()

            self._connections.clear()
            self._available = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False

    @asynccontextmanager
    async def _get_connection(self):
        """Get a connection from the pool."""
        if not self._initialized:
            await self.connect()

        conn = await self._available.get()
        try:
            yield conn
        finally:
            await self._available.put(conn)

    async def execute(self, query: str, params: Optional[tuple] = None) -> Any:
        """Execute a write query and commit."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            await conn.commit()
            return cursor

    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            row = await cursor.fetchone()
            if row:
                return dict(row)
            return None

    async def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def fetch_value(self, query: str, params: Optional[tuple] = None) -> Any:
        """Fetch the first column of the first row."""
        row = await self.fetch_one(query, params)
        if not row:
            return None
        return next(iter(row.values()))


def _time_filter(column: str, start: Optional[datetime], end: Optional[datetime]):
    """Build an optional ``[start, end)`` filter on a timestamp column."""
    conditions = []
    params: List[Any] = []
    if start is not None:
        conditions.append(f"{column} >= ?")
        params.append(format_timestamp(start))
    if end is not None:
        conditions.append(f"{column} < ?")
        params.append(format_timestamp(end))
    return conditions, params


class SQLiteYarnRepository(YarnRepository):
    """SQLite implementation of yarn inventory reads."""

    SELECT = """
    SELECT y.*, b.name AS brand_name, l.name AS line_name,
           l.weight_category AS weight_category
    FROM yarn_inventory y
    LEFT JOIN yarn_lines l ON l.id = y.yarn_line_id
    LEFT JOIN yarn_brands b ON b.id = l.brand_id
    """

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def find_recent(self, user_id: int, limit: int) -> List[YarnStock]:
        query = f"""
        {self.SELECT}
        WHERE y.user_id = ?
        ORDER BY y.created_at DESC, y.id DESC
        LIMIT ?
        """
        rows = await self.connection.fetch_all(query, (user_id, limit))
        return [self._row_to_yarn(row) for row in rows]

    async def count_since(self, user_id: int, since: datetime) -> int:
        query = "SELECT COUNT(*) FROM yarn_inventory WHERE user_id = ? AND created_at >= ?"
        return await self.connection.fetch_value(query, (user_id, format_timestamp(since))) or 0

    async def find_in_range(self, user_id: int, start: datetime, end: datetime) -> List[YarnStock]:
        return await self.find_all(user_id, start, end)

    async def find_all(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[YarnStock]:
        conditions, params = _time_filter("y.created_at", start, end)
        conditions.insert(0, "y.user_id = ?")
        params.insert(0, user_id)

        query = f"""
        {self.SELECT}
        WHERE {' AND '.join(conditions)}
        ORDER BY y.created_at DESC, y.id DESC
        """
        rows = await self.connection.fetch_all(query, tuple(params))
        return [self._row_to_yarn(row) for row in rows]

    async def count(self, user_id: int) -> int:
        query = "SELECT COUNT(*) FROM yarn_inventory WHERE user_id = ?"
        return await self.connection.fetch_value(query, (user_id,)) or 0

    async def total_value(self, user_id: int) -> float:
        query = "SELECT COALESCE(SUM(purchase_price), 0) FROM yarn_inventory WHERE user_id = ?"
        return float(await self.connection.fetch_value(query, (user_id,)) or 0)

    async def count_by_weight(self, user_id: int) -> Dict[str, int]:
        query = """
        SELECT COALESCE(l.weight_category, 'unknown') AS weight_category, COUNT(y.id) AS count
        FROM yarn_inventory y
        LEFT JOIN yarn_lines l ON l.id = y.yarn_line_id
        WHERE y.user_id = ?
        GROUP BY COALESCE(l.weight_category, 'unknown')
        ORDER BY count DESC
        """
        rows = await self.connection.fetch_all(query, (user_id,))
        return {row["weight_category"]: row["count"] for row in rows}

    def _row_to_yarn(self, row: Dict[str, Any]) -> YarnStock:
        return YarnStock(
            id=row["id"],
            user_id=row["user_id"],
            colorway=row["colorway"],
            created_at=parse_datetime(row["created_at"]),
            yarn_line_id=row.get("yarn_line_id"),
            brand_name=row.get("brand_name"),
            line_name=row.get("line_name"),
            weight_category=row.get("weight_category"),
            color_family=row.get("color_family"),
            dye_lot=row.get("dye_lot"),
            skeins_total=row.get("skeins_total") or 0,
            skeins_remaining=row.get("skeins_remaining") or 0,
            total_yardage=row.get("total_yardage"),
            remaining_yardage=row.get("remaining_yardage"),
            purchase_date=_parse_date(row.get("purchase_date")),
            purchase_price=row.get("purchase_price"),
            vendor=row.get("vendor"),
            storage_location=row.get("storage_location"),
            notes=row.get("notes"),
        )


class SQLitePatternRepository(PatternRepository):
    """SQLite implementation of pattern reads."""

    SELECT = """
    SELECT p.*, d.name AS designer_name
    FROM patterns p
    LEFT JOIN pattern_designers d ON d.id = p.designer_id
    """

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def find_recent(self, user_id: int, limit: int) -> List[Pattern]:
        query = f"""
        {self.SELECT}
        WHERE p.user_id = ?
        ORDER BY p.created_at DESC, p.id DESC
        LIMIT ?
        """
        rows = await self.connection.fetch_all(query, (user_id, limit))
        return [self._row_to_pattern(row) for row in rows]

    async def count_since(self, user_id: int, since: datetime) -> int:
        query = "SELECT COUNT(*) FROM patterns WHERE user_id = ? AND created_at >= ?"
        return await self.connection.fetch_value(query, (user_id, format_timestamp(since))) or 0

    async def find_in_range(self, user_id: int, start: datetime, end: datetime) -> List[Pattern]:
        return await self.find_all(user_id, start, end)

    async def find_all(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Pattern]:
        conditions, params = _time_filter("p.created_at", start, end)
        conditions.insert(0, "p.user_id = ?")
        params.insert(0, user_id)

        query = f"""
        {self.SELECT}
        WHERE {' AND '.join(conditions)}
        ORDER BY p.created_at DESC, p.id DESC
        """
        rows = await self.connection.fetch_all(query, tuple(params))
        return [self._row_to_pattern(row) for row in rows]

    async def count(self, user_id: int) -> int:
        query = "SELECT COUNT(*) FROM patterns WHERE user_id = ?"
        return await self.connection.fetch_value(query, (user_id,)) or 0

    async def find_unsynced(self, user_id: int) -> List[Pattern]:
        query = f"""
        {self.SELECT}
        WHERE p.user_id = ? AND p.local_file_path IS NOT NULL AND p.drive_file_id IS NULL
        ORDER BY p.created_at ASC, p.id ASC
        """
        rows = await self.connection.fetch_all(query, (user_id,))
        return [self._row_to_pattern(row) for row in rows]

    async def set_drive_file(
        self,
        user_id: int,
        pattern_id: int,
        drive_file_id: str,
        thumbnail_drive_id: Optional[str] = None,
    ) -> bool:
        query = """
        UPDATE patterns SET drive_file_id = ?, thumbnail_drive_id = ?
        WHERE id = ? AND user_id = ?
        """
        cursor = await self.connection.execute(
            query, (drive_file_id, thumbnail_drive_id, pattern_id, user_id)
        )
        return cursor.rowcount > 0

    def _row_to_pattern(self, row: Dict[str, Any]) -> Pattern:
        return Pattern(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            created_at=parse_datetime(row["created_at"]),
            designer_id=row.get("designer_id"),
            designer_name=row.get("designer_name"),
            craft_type=row.get("craft_type"),
            difficulty_level=row.get("difficulty_level"),
            yardage_required=row.get("yardage_required"),
            original_filename=row.get("original_filename"),
            file_type=row.get("file_type"),
            file_size_bytes=row.get("file_size_bytes"),
            local_file_path=row.get("local_file_path"),
            drive_file_id=row.get("drive_file_id"),
            thumbnail_drive_id=row.get("thumbnail_drive_id"),
            notes=row.get("notes"),
        )


class SQLiteProjectRepository(ProjectRepository):
    """SQLite implementation of project reads."""

    SELECT = """
    SELECT pr.*, pt.title AS pattern_title,
           (SELECT GROUP_CONCAT(u.yarn_inventory_id)
            FROM project_yarn_usage u WHERE u.project_id = pr.id) AS yarn_ids
    FROM projects pr
    LEFT JOIN patterns pt ON pt.id = pr.pattern_id
    """

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def find_recent(self, user_id: int, limit: int) -> List[Project]:
        query = f"""
        {self.SELECT}
        WHERE pr.user_id = ?
        ORDER BY pr.created_at DESC, pr.id DESC
        LIMIT ?
        """
        rows = await self.connection.fetch_all(query, (user_id, limit))
        return [self._row_to_project(row) for row in rows]

    async def count_since(self, user_id: int, since: datetime) -> int:
        query = "SELECT COUNT(*) FROM projects WHERE user_id = ? AND created_at >= ?"
        return await self.connection.fetch_value(query, (user_id, format_timestamp(since))) or 0

    async def find_in_range(self, user_id: int, start: datetime, end: datetime) -> List[Project]:
        return await self.find_all(user_id, start, end)

    async def find_all(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Project]:
        conditions, params = _time_filter("pr.created_at", start, end)
        conditions.insert(0, "pr.user_id = ?")
        params.insert(0, user_id)

        query = f"""
        {self.SELECT}
        WHERE {' AND '.join(conditions)}
        ORDER BY pr.created_at DESC, pr.id DESC
        """
        rows = await self.connection.fetch_all(query, tuple(params))
        return [self._row_to_project(row) for row in rows]

    async def count_completed_since(self, user_id: int, since: datetime) -> int:
        query = """
        SELECT COUNT(*) FROM projects
        WHERE user_id = ? AND status = 'completed' AND completion_date >= ?
        """
        return await self.connection.fetch_value(query, (user_id, format_timestamp(since))) or 0

    async def find_completed_in_range(
        self, user_id: int, start: datetime, end: datetime
    ) -> List[Project]:
        query = f"""
        {self.SELECT}
        WHERE pr.user_id = ? AND pr.status = 'completed'
          AND pr.completion_date >= ? AND pr.completion_date < ?
        ORDER BY pr.completion_date DESC, pr.id DESC
        """
        rows = await self.connection.fetch_all(
            query, (user_id, format_timestamp(start), format_timestamp(end))
        )
        return [self._row_to_project(row) for row in rows]

    async def count_by_status(self, user_id: int) -> Dict[str, int]:
        query = "SELECT status, COUNT(*) AS count FROM projects WHERE user_id = ? GROUP BY status"
        rows = await self.connection.fetch_all(query, (user_id,))
        return {row["status"]: row["count"] for row in rows}

    def _row_to_project(self, row: Dict[str, Any]) -> Project:
        yarn_ids = []
        if row.get("yarn_ids"):
            yarn_ids = sorted(int(v) for v in str(row["yarn_ids"]).split(","))

        return Project(
            id=row["id"],
            user_id=row["user_id"],
            project_name=row["project_name"],
            created_at=parse_datetime(row["created_at"]),
            status=ProjectStatus(row.get("status") or "queued"),
            pattern_id=row.get("pattern_id"),
            pattern_title=row.get("pattern_title"),
            start_date=_parse_date(row.get("start_date")),
            target_completion_date=_parse_date(row.get("target_completion_date")),
            completion_date=parse_datetime(row.get("completion_date")),
            total_hours_worked=row.get("total_hours_worked") or 0,
            notes=row.get("notes"),
            yarn_ids=yarn_ids,
        )


class SQLiteProgressRepository(ProgressRepository):
    """SQLite implementation of progress reads."""

    SELECT = """
    SELECT pp.*, pr.project_name AS project_name, pr.user_id AS user_id
    FROM project_progress pp
    JOIN projects pr ON pr.id = pp.project_id
    """

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def find_recent(self, user_id: int, limit: int) -> List[ProjectProgress]:
        query = f"""
        {self.SELECT}
        WHERE pr.user_id = ?
        ORDER BY pp.created_at DESC, pp.id DESC
        LIMIT ?
        """
        rows = await self.connection.fetch_all(query, (user_id, limit))
        return [self._row_to_progress(row) for row in rows]

    async def count_since(self, user_id: int, since: datetime) -> int:
        query = """
        SELECT COUNT(*) FROM project_progress pp
        JOIN projects pr ON pr.id = pp.project_id
        WHERE pr.user_id = ? AND pp.created_at >= ?
        """
        return await self.connection.fetch_value(query, (user_id, format_timestamp(since))) or 0

    async def find_in_range(
        self, user_id: int, start: datetime, end: datetime
    ) -> List[ProjectProgress]:
        query = f"""
        {self.SELECT}
        WHERE pr.user_id = ? AND pp.created_at >= ? AND pp.created_at < ?
        ORDER BY pp.created_at DESC, pp.id DESC
        """
        rows = await self.connection.fetch_all(
            query, (user_id, format_timestamp(start), format_timestamp(end))
        )
        return [self._row_to_progress(row) for row in rows]

    def _row_to_progress(self, row: Dict[str, Any]) -> ProjectProgress:
        return ProjectProgress(
            id=row["id"],
            project_id=row["project_id"],
            user_id=row["user_id"],
            created_at=parse_datetime(row["created_at"]),
            progress_type=ProgressType(row.get("progress_type") or "milestone"),
            progress_value=row.get("progress_value"),
            progress_date=_parse_date(row.get("progress_date")),
            project_name=row.get("project_name"),
            hours_worked=row.get("hours_worked"),
            notes=row.get("notes"),
        )


class SQLiteSyncLogRepository(SyncLogRepository):
    """SQLite implementation of the sync audit log."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def add(self, entry: SyncLogEntry) -> int:
        query = """
        INSERT INTO sync_log (
            user_id, sync_type, entity_type, entity_id, action,
            external_object_id, path, status, error_message,
            byte_size, duration_ms, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        params = (
            entry.user_id,
            entry.sync_type.value,
            entry.entity_type,
            entry.entity_id,
            entry.action,
            entry.external_object_id,
            entry.path,
            entry.status.value,
            entry.error_message,
            entry.byte_size,
            entry.duration_ms,
            format_timestamp(entry.created_at),
        )
        cursor = await self.connection.execute(query, params)
        entry.id = cursor.lastrowid
        return entry.id

    async def find_by_user(self, user_id: int, limit: int = 50) -> List[SyncLogEntry]:
        query = """
        SELECT * FROM sync_log
        WHERE user_id = ?
        ORDER BY created_at DESC, id DESC
        LIMIT ?
        """
        rows = await self.connection.fetch_all(query, (user_id, limit))
        return [SyncLogEntry.from_row(row) for row in rows]


class SQLiteDriveTokenRepository(DriveTokenRepository):
    """SQLite storage for encrypted Drive tokens."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def save_tokens(
        self,
        user_id: int,
        access_token: str,
        refresh_token: str,
        expires_at: Optional[datetime],
        scope: str,
    ) -> None:
        query = """
        INSERT OR REPLACE INTO drive_tokens (
            user_id, access_token, refresh_token, expires_at, scope, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?)
        """
        await self.connection.execute(query, (
            user_id,
            access_token,
            refresh_token,
            format_timestamp(expires_at),
            scope,
            format_timestamp(datetime.now(timezone.utc)),
        ))

    async def get_tokens(self, user_id: int) -> Optional[Dict[str, Any]]:
        query = "SELECT * FROM drive_tokens WHERE user_id = ?"
        row = await self.connection.fetch_one(query, (user_id,))
        if not row:
            return None
        row["expires_at"] = parse_datetime(row.get("expires_at"))
        row["updated_at"] = parse_datetime(row.get("updated_at"))
        return row

    async def delete_tokens(self, user_id: int) -> bool:
        cursor = await self.connection.execute(
            "DELETE FROM drive_tokens WHERE user_id = ?", (user_id,)
        )
        return cursor.rowcount > 0

    async def list_connected_users(self) -> List[int]:
        rows = await self.connection.fetch_all(
            "SELECT user_id FROM drive_tokens ORDER BY user_id"
        )
        return [row["user_id"] for row in rows]


class SQLiteShoppingListRepository(ShoppingListRepository):
    """SQLite implementation of shopping list reads."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def get_list(self, user_id: int, list_id: int) -> Optional[ShoppingList]:
        row = await self.connection.fetch_one(
            "SELECT * FROM shopping_lists WHERE id = ? AND user_id = ?",
            (list_id, user_id),
        )
        if not row:
            return None

        item_rows = await self.connection.fetch_all("""
        SELECT i.*, b.name AS brand_name, l.name AS line_name,
               p.title AS pattern_title, d.name AS pattern_designer
        FROM shopping_list_items i
        LEFT JOIN yarn_lines l ON l.id = i.yarn_line_id
        LEFT JOIN yarn_brands b ON b.id = l.brand_id
        LEFT JOIN patterns p ON p.id = i.pattern_id
        LEFT JOIN pattern_designers d ON d.id = p.designer_id
        WHERE i.shopping_list_id = ?
        ORDER BY i.id ASC
        """, (list_id,))

        return ShoppingList(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            description=row.get("description"),
            created_at=parse_datetime(row["created_at"]),
            items=[self._row_to_item(r) for r in item_rows],
        )

    def _row_to_item(self, row: Dict[str, Any]) -> ShoppingListItem:
        return ShoppingListItem(
            id=row["id"],
            item_type=ItemType(row["item_type"]),
            quantity=row.get("quantity") or 1,
            brand_name=row.get("brand_name"),
            line_name=row.get("line_name"),
            pattern_title=row.get("pattern_title"),
            pattern_designer=row.get("pattern_designer"),
            item_name=row.get("item_name"),
            colorway=row.get("colorway"),
            estimated_price=row.get("estimated_price"),
            actual_price=row.get("actual_price"),
            vendor=row.get("vendor"),
            notes=row.get("notes"),
            purchased=bool(row.get("purchased")),
            purchase_date=_parse_date(row.get("purchase_date")),
        )
