"""Persistence for tasks."""

from __future__ import annotations

import logging
import uuid

from focustools.errors import NotFoundError, ValidationError
from focustools.storage.database import Database, order_by_clause, to_db_timestamp, utc_now
from focustools.storage.models import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

# API sort key -> column
TASK_SORT_COLUMNS = {
    "id": "id",
    "title": "title",
    "completed": "completed",
    "pomodoroCount": "pomodoro_count",
    "pomodoro_count": "pomodoro_count",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
}

# TaskUpdate field -> column
_UPDATE_COLUMNS = {
    "title": "title",
    "completed": "completed",
    "pomodoro_count": "pomodoro_count",
}


class TaskStore:
    """CRUD operations over the ``tasks`` table."""

    def __init__(self, db: Database):
        self.db = db

    async def create(self, data: TaskCreate) -> Task:
        now = to_db_timestamp(utc_now())
        task_id = uuid.uuid4().hex
        await self.db.insert(
            "tasks",
            {
                "id": task_id,
                "title": data.title,
                "completed": data.completed,
                "pomodoro_count": 0,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.debug(f"Created task {task_id}: {data.title!r}")
        return await self.get(task_id)

    async def find(self, task_id: str) -> Task | None:
        row = await self.db.fetch_one("SELECT * FROM tasks WHERE id = ?", (task_id,))
        return Task.from_row(row) if row else None

    async def get(self, task_id: str) -> Task:
        task = await self.find(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def list(
        self,
        completed: bool | None = None,
        sort_by: str | None = None,
        order: str | None = None,
    ) -> list[Task]:
        """List tasks, optionally filtered by completion and sorted by a field."""
        where = ""
        params: tuple = ()
        if completed is not None:
            where = "WHERE completed = ?"
            params = (completed,)

        order_by = order_by_clause(sort_by, order, TASK_SORT_COLUMNS)
        rows = await self.db.fetch_all(f"SELECT * FROM tasks {where} {order_by}", params)
        return [Task.from_row(row) for row in rows]

    async def search(self, query: str | None) -> list[Task]:
        """Case-insensitive substring match on title."""
        if not query:
            raise ValidationError("Search query 'q' is required")

        needle = query.casefold()
        return [task for task in await self.list() if needle in task.title.casefold()]

    async def update(self, task_id: str, data: TaskUpdate) -> Task:
        """Apply the fields set on ``data``; unset fields keep their values."""
        changes = data.changes()
        if not changes:
            return await self.get(task_id)

        assignments = ", ".join(f"{_UPDATE_COLUMNS[name]} = ?" for name in changes)
        params = (*changes.values(), to_db_timestamp(utc_now()), task_id)
        updated = await self.db.execute(
            f"UPDATE tasks SET {assignments}, updated_at = ? WHERE id = ?", params
        )
        if not updated:
            raise NotFoundError("Task not found")
        return await self.get(task_id)

    async def delete(self, task_id: str) -> Task:
        """Delete a task and return the removed record."""
        task = await self.get(task_id)
        await self.db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        logger.debug(f"Deleted task {task_id}")
        return task

    async def toggle_complete(self, task_id: str) -> Task:
        task = await self.get(task_id)
        return await self.update(task_id, TaskUpdate(completed=not task.completed))

    async def rename(self, task_id: str, title: str) -> Task:
        """Rename a task if the new title is non-empty and actually different."""
        task = await self.get(task_id)
        title = title.strip()
        if not title or title == task.title:
            return task
        return await self.update(task_id, TaskUpdate(title=title))

    async def increment_pomodoro_count(self, task_id: str) -> Task:
        updated = await self.db.execute(
            "UPDATE tasks SET pomodoro_count = pomodoro_count + 1, updated_at = ? WHERE id = ?",
            (to_db_timestamp(utc_now()), task_id),
        )
        if not updated:
            raise NotFoundError("Task not found")
        return await self.get(task_id)

    async def count(self, completed: bool | None = None) -> int:
        if completed is None:
            row = await self.db.fetch_one("SELECT COUNT(*) AS count FROM tasks")
        else:
            row = await self.db.fetch_one(
                "SELECT COUNT(*) AS count FROM tasks WHERE completed = ?", (completed,)
            )
        return row["count"] if row else 0
