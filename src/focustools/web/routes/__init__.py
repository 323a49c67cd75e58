"""API routes for tasks, sessions, and stats."""

from focustools.web.routes import info, sessions, stats, tasks

__all__ = ["info", "sessions", "stats", "tasks"]
