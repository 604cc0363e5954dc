"""
Database schema migrations.

Migrations are applied in version order and recorded in the
``schema_migrations`` table so each runs exactly once per database.
"""

import logging
from pathlib import Path
from typing import List, Tuple

import aiosqlite

logger = logging.getLogger(__name__)


MIGRATIONS: List[Tuple[int, str, str]] = [
    (1, "initial_schema", """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT NOT NULL UNIQUE,
        display_name TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS yarn_brands (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    );

    CREATE TABLE IF NOT EXISTS yarn_lines (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        brand_id INTEGER REFERENCES yarn_brands(id),
        name TEXT NOT NULL,
        weight_category TEXT,
        yardage_per_skein INTEGER
    );

    CREATE TABLE IF NOT EXISTS yarn_inventory (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        yarn_line_id INTEGER REFERENCES yarn_lines(id),
        colorway TEXT NOT NULL,
        color_family TEXT,
        dye_lot TEXT,
        skeins_total REAL NOT NULL DEFAULT 1,
        skeins_remaining REAL NOT NULL DEFAULT 1,
        total_yardage INTEGER,
        remaining_yardage INTEGER,
        purchase_date TEXT,
        purchase_price REAL,
        vendor TEXT,
        storage_location TEXT,
        notes TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS pattern_designers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS patterns (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        designer_id INTEGER REFERENCES pattern_designers(id),
        craft_type TEXT,
        difficulty_level TEXT,
        yardage_required INTEGER,
        original_filename TEXT,
        file_type TEXT,
        file_size_bytes INTEGER,
        local_file_path TEXT,
        drive_file_id TEXT,
        thumbnail_drive_id TEXT,
        notes TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        pattern_id INTEGER REFERENCES patterns(id) ON DELETE SET NULL,
        project_name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'queued'
            CHECK (status IN ('queued', 'active', 'completed', 'frogged', 'hibernating')),
        start_date TEXT,
        target_completion_date TEXT,
        completion_date TEXT,
        total_hours_worked REAL DEFAULT 0,
        notes TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS project_progress (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
        progress_date TEXT,
        progress_type TEXT NOT NULL DEFAULT 'milestone'
            CHECK (progress_type IN ('rows_completed', 'percentage', 'milestone')),
        progress_value REAL,
        hours_worked REAL,
        notes TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS project_yarn_usage (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
        yarn_inventory_id INTEGER NOT NULL REFERENCES yarn_inventory(id) ON DELETE CASCADE,
        skeins_used REAL,
        yardage_used INTEGER
    );

    CREATE TABLE IF NOT EXISTS shopping_lists (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        description TEXT,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS shopping_list_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        shopping_list_id INTEGER NOT NULL REFERENCES shopping_lists(id) ON DELETE CASCADE,
        item_type TEXT NOT NULL CHECK (item_type IN ('yarn', 'pattern', 'notion', 'tool')),
        yarn_line_id INTEGER REFERENCES yarn_lines(id),
        pattern_id INTEGER REFERENCES patterns(id),
        item_name TEXT,
        colorway TEXT,
        quantity INTEGER NOT NULL DEFAULT 1,
        estimated_price REAL,
        actual_price REAL,
        vendor TEXT,
        notes TEXT,
        purchased INTEGER NOT NULL DEFAULT 0,
        purchase_date TEXT
    );

    CREATE TABLE IF NOT EXISTS sync_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        sync_type TEXT NOT NULL,
        entity_type TEXT NOT NULL,
        entity_id INTEGER,
        action TEXT NOT NULL,
        external_object_id TEXT,
        path TEXT,
        status TEXT NOT NULL CHECK (status IN ('success', 'error', 'pending')),
        error_message TEXT,
        byte_size INTEGER,
        duration_ms INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS drive_tokens (
        user_id INTEGER PRIMARY KEY,
        access_token TEXT NOT NULL,
        refresh_token TEXT NOT NULL,
        expires_at TEXT,
        scope TEXT,
        updated_at TEXT NOT NULL
    );
    """),
    (2, "read_indexes", """
    CREATE INDEX IF NOT EXISTS idx_yarn_user_created ON yarn_inventory(user_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_patterns_user_created ON patterns(user_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_projects_user_created ON projects(user_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_projects_user_completed ON projects(user_id, completion_date);
    CREATE INDEX IF NOT EXISTS idx_progress_project_created ON project_progress(project_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_sync_log_user_created ON sync_log(user_id, created_at);
    """),
]


class MigrationRunner:
    """Applies pending schema migrations to a SQLite database."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def applied_versions(self, conn: aiosqlite.Connection) -> List[int]:
        await conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """)
        cursor = await conn.execute("SELECT version FROM schema_migrations ORDER BY version")
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def run(self) -> int:
        """
        Apply all pending migrations.

        Returns:
            Number of migrations applied
        """
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        applied = 0

        async with aiosqlite.connect(self.db_path) as conn:
            done = set(await self.applied_versions(conn))

            for version, name, script in MIGRATIONS:
                if version in done:
                    continue
                logger.info(f"Applying migration {version}: {name}")
                await conn.executescript(script)
                await conn.execute(
                    "INSERT INTO schema_migrations (version, name) VALUES (?, ?)",
                    (version, name),
                )
                await conn.commit()
                applied += 1

        if applied:
            logger.info(f"Applied {applied} migration(s) to {self.db_path}")
        return applied


async def run_migrations(db_path: str) -> int:
    """Apply pending migrations to the database at ``db_path``."""
    return await MigrationRunner(db_path).run()
