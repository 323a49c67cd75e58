"""Read-only productivity totals over tasks and sessions."""

from __future__ import annotations

import math

from focustools.storage.database import Database
from focustools.storage.models import Stats
from focustools.storage.session_store import SessionStore
from focustools.storage.task_store import TaskStore


def seconds_to_minutes(total_seconds: int) -> int:
    """Convert seconds to whole minutes, rounding halves up."""
    return math.floor(total_seconds / 60 + 0.5)


class StatsAggregator:
    """Computes stats fresh on every call; nothing is cached."""

    def __init__(self, db: Database):
        self.tasks = TaskStore(db)
        self.sessions = SessionStore(db)

    async def compute(self) -> Stats:
        total_seconds = await self.sessions.total_seconds()
        return Stats(
            total_pomodoros=await self.sessions.count(),
            total_minutes=seconds_to_minutes(total_seconds),
            completed_tasks=await self.tasks.count(completed=True),
            active_tasks=await self.tasks.count(completed=False),
        )
