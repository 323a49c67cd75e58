"""Persistence for focus sessions."""

from __future__ import annotations

import logging
import uuid

from focustools.errors import NotFoundError, ValidationError
from focustools.storage.database import Database, order_by_clause, to_db_timestamp, utc_now
from focustools.storage.models import Session, SessionCreate

logger = logging.getLogger(__name__)

# API sort key -> column; "date" is an alias for the start time
SESSION_SORT_COLUMNS = {
    "id": "s.id",
    "taskId": "s.task_id",
    "task_id": "s.task_id",
    "duration": "s.duration",
    "startTime": "s.start_time",
    "start_time": "s.start_time",
    "date": "s.start_time",
    "completed": "s.completed",
    "createdAt": "s.created_at",
    "created_at": "s.created_at",
    "updatedAt": "s.updated_at",
    "updated_at": "s.updated_at",
}

_SELECT_JOINED = """
    SELECT
        s.*,
        t.id AS t_id,
        t.title AS t_title,
        t.completed AS t_completed,
        t.pomodoro_count AS t_pomodoro_count
    FROM sessions s
    LEFT JOIN tasks t ON t.id = s.task_id
"""


class SessionStore:
    """Append-only log of focus sessions."""

    def __init__(self, db: Database):
        self.db = db

    async def create(self, data: SessionCreate) -> Session:
        """Log a session; the referenced task must exist."""
        task = await self.db.fetch_one("SELECT id FROM tasks WHERE id = ?", (data.task_id,))
        if task is None:
            raise ValidationError(f"Task '{data.task_id}' does not exist")

        now = to_db_timestamp(utc_now())
        session_id = uuid.uuid4().hex
        await self.db.insert(
            "sessions",
            {
                "id": session_id,
                "task_id": data.task_id,
                "duration": data.duration,
                "start_time": to_db_timestamp(data.start_time),
                "completed": data.completed,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.debug(
            f"Logged session {session_id} for task {data.task_id} ({data.duration}s)"
        )
        return await self.get(session_id)

    async def get(self, session_id: str) -> Session:
        row = await self.db.fetch_one(f"{_SELECT_JOINED} WHERE s.id = ?", (session_id,))
        if row is None:
            raise NotFoundError("Session not found")
        return Session.from_row(row)

    async def list(self, sort_by: str | None = None, order: str | None = None) -> list[Session]:
        """All sessions joined with their task, optionally sorted."""
        order_by = order_by_clause(sort_by, order, SESSION_SORT_COLUMNS, tiebreak="s.rowid")
        rows = await self.db.fetch_all(f"{_SELECT_JOINED} {order_by}")
        return [Session.from_row(row) for row in rows]

    async def list_for_task(self, task_id: str) -> list[Session]:
        rows = await self.db.fetch_all(
            f"{_SELECT_JOINED} WHERE s.task_id = ? ORDER BY s.rowid ASC", (task_id,)
        )
        return [Session.from_row(row) for row in rows]

    async def count(self) -> int:
        row = await self.db.fetch_one("SELECT COUNT(*) AS count FROM sessions")
        return row["count"] if row else 0

    async def total_seconds(self) -> int:
        row = await self.db.fetch_one(
            "SELECT COALESCE(SUM(duration), 0) AS total FROM sessions"
        )
        return row["total"] if row else 0
