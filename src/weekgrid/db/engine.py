"""Database engine setup and initialization."""

from pathlib import Path

import aiosqlite

from ..config import get_settings


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the database file path."""
    if data_dir is None:
        data_dir = get_settings().data_dir
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "weekgrid.db"


async def _run_migrations(db: aiosqlite.Connection) -> None:
    """Run database migrations for schema updates."""
    cursor = await db.execute("PRAGMA table_info(sessions)")
    columns = await cursor.fetchall()
    column_names = {col[1] for col in columns}

    # Older logs stored only the raw document
    if "date_iso" not in column_names:
        await db.execute("ALTER TABLE sessions ADD COLUMN date_iso TEXT")
    if "completed_at" not in column_names:
        await db.execute("ALTER TABLE sessions ADD COLUMN completed_at INTEGER")

    await db.commit()


async def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    if db_path is None:
        db_path = get_db_path()

    async with aiosqlite.connect(db_path) as db:
        # One document per user and week
        await db.execute("""
            CREATE TABLE IF NOT EXISTS weekly_state (
                user_id TEXT NOT NULL,
                week_key TEXT NOT NULL,
                document TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, week_key)
            )
        """)

        # Append-only session log
        await db.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                document TEXT NOT NULL,
                date_iso TEXT,
                completed_at INTEGER,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Global workout types and categories per user
        await db.execute("""
            CREATE TABLE IF NOT EXISTS type_settings (
                user_id TEXT PRIMARY KEY,
                types TEXT NOT NULL DEFAULT '[]',
                categories TEXT NOT NULL DEFAULT '{}'
            )
        """)

        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_sessions_user
            ON sessions(user_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_sessions_user_date
            ON sessions(user_id, date_iso)
        """)

        await db.commit()

        await _run_migrations(db)
