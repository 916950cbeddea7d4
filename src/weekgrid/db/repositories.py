"""Data access layer for weekgrid."""

import json
import uuid
from pathlib import Path

import aiosqlite
from loguru import logger

from ..models.session import SessionEvent
from ..models.weekly import WeeklyDocument
from .engine import get_db_path


class StateRepository:
    """Repository for one user's weekly documents and session log.

    Weekly documents are replaced whole on every write, never merged field by
    field, so a rebuild cannot interleave with a concurrent partial update.
    """

    def __init__(self, db_path: Path | None = None, user_id: str = "local"):
        self.db_path = db_path or get_db_path()
        self.user_id = user_id

    # Weekly documents

    async def get_weekly(self, week_key: str) -> WeeklyDocument | None:
        """Get the document for a week.

        Raises:
            ValueError: If the stored document cannot be read as a week
        """
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT document FROM weekly_state WHERE user_id = ? AND week_key = ?",
                (self.user_id, week_key),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return WeeklyDocument.from_dict(json.loads(row["document"]))

    async def set_weekly(self, week_key: str, weekly: WeeklyDocument) -> None:
        """Replace the document for a week."""
        if weekly.week_of_iso != week_key:
            raise ValueError(
                f"Document for {weekly.week_of_iso} cannot be stored under {week_key}"
            )
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT OR REPLACE INTO weekly_state
                (user_id, week_key, document, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                """,
                (self.user_id, week_key, json.dumps({"weekly": weekly.to_dict()})),
            )
            await db.commit()
        logger.debug(f"Stored week {week_key} for {self.user_id}")

    async def list_weeks(self) -> list[str]:
        """List stored week keys, newest first."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT week_key FROM weekly_state WHERE user_id = ? ORDER BY week_key DESC",
                (self.user_id,),
            )
            rows = await cursor.fetchall()
            return [row[0] for row in rows]

    # Session log

    async def add_session(self, event: SessionEvent) -> str:
        """Append a session event and return its id."""
        session_id = event.id or uuid.uuid4().hex
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO sessions
                (id, user_id, document, date_iso, completed_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    self.user_id,
                    json.dumps(event.to_dict()),
                    event.date_iso,
                    event.completed_at,
                ),
            )
            await db.commit()
        event.id = session_id
        return session_id

    async def get_session(self, session_id: str) -> SessionEvent | None:
        """Get a session event by ID."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM sessions WHERE id = ? AND user_id = ?",
                (session_id, self.user_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_session(row)

    async def list_sessions(self) -> list[SessionEvent]:
        """List all of the user's session events (no particular order)."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM sessions WHERE user_id = ?", (self.user_id,)
            )
            rows = await cursor.fetchall()
            return [self._row_to_session(row) for row in rows]

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session event. Returns False if it did not exist."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM sessions WHERE id = ? AND user_id = ?",
                (session_id, self.user_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    def _row_to_session(self, row: aiosqlite.Row) -> SessionEvent:
        """Convert a database row to a SessionEvent."""
        return SessionEvent.from_dict(json.loads(row["document"]), id=row["id"])

    # Type settings

    async def get_type_settings(self) -> tuple[list[str], dict[str, str]]:
        """Get the user's global workout types and their categories."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM type_settings WHERE user_id = ?", (self.user_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return [], {}
            return json.loads(row["types"]), json.loads(row["categories"])

    async def set_type_settings(
        self, types: list[str], categories: dict[str, str]
    ) -> None:
        """Replace the user's global workout types and categories."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT OR REPLACE INTO type_settings (user_id, types, categories)
                VALUES (?, ?, ?)
                """,
                (self.user_id, json.dumps(types), json.dumps(categories)),
            )
            await db.commit()
