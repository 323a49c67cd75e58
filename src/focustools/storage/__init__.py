"""Storage layer for tasks and focus sessions."""

from focustools.storage.database import Database, open_database
from focustools.storage.session_store import SessionStore
from focustools.storage.stats import StatsAggregator
from focustools.storage.task_store import TaskStore

__all__ = ["Database", "open_database", "SessionStore", "StatsAggregator", "TaskStore"]
