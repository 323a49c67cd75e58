"""Controller that ties the timer to the active task and the session log."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable

from focustools.core.config import TimerSettings
from focustools.focus.timer import TickSource, TimerEngine, TimerPhase, TimerState
from focustools.storage.database import utc_now
from focustools.storage.models import Session, SessionCreate, Task
from focustools.storage.session_store import SessionStore
from focustools.storage.task_store import TaskStore

logger = logging.getLogger(__name__)


class FocusSession:
    """Owns one timer instance and credits finished work phases to a task.

    At most one task is active at a time. Selecting a task never starts the
    timer. When a work phase finishes, a completed session is logged and the
    active task's pomodoro count goes up. Resetting mid-way through a work
    phase logs the elapsed time as an aborted session.

    Store writes are fire-and-forget tasks on the running event loop; a
    failed write is logged and not retried. ``drain()`` waits for them.

    Usage:
        focus = FocusSession(tasks, sessions, settings, AsyncioTickSource())
        await focus.select_task(task.id)
        focus.start()
        ...
        await focus.close()
    """

    def __init__(
        self,
        tasks: TaskStore,
        sessions: SessionStore,
        settings: TimerSettings | None = None,
        tick_source: TickSource | None = None,
        cue: Callable[[], None] | None = None,
    ):
        self.tasks = tasks
        self.sessions = sessions
        self.engine = TimerEngine(settings, tick_source, cue)
        self.engine.on_work_complete = self._on_work_complete

        self.active_task_id: str | None = None
        self.recorded: list[Session] = []
        self.on_session_recorded: Callable[[Session], None] | None = None

        self._work_started_at: datetime | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def state(self) -> TimerState:
        return self.engine.state

    # ----- Task selection -----
    async def select_task(self, task_id: str | None) -> Task | None:
        """Make ``task_id`` the active task (``None`` clears the selection)."""
        if task_id is None:
            self.active_task_id = None
            return None
        task = await self.tasks.get(task_id)
        self.active_task_id = task.id
        logger.info(f"Active task: {task.title}")
        return task

    async def delete_task(self, task_id: str) -> Task:
        """Delete a task, dropping the selection if it was active."""
        task = await self.tasks.delete(task_id)
        if self.active_task_id == task_id:
            self.active_task_id = None
        return task

    # ----- Timer controls -----
    def start(self) -> None:
        was_running = self.engine.is_running
        self.engine.start()
        if (
            self.engine.is_running
            and not was_running
            and self.engine.phase == TimerPhase.WORK
            and self._work_started_at is None
        ):
            self._work_started_at = utc_now()

    def pause(self) -> None:
        self.engine.pause()

    def toggle(self) -> None:
        if self.engine.is_running:
            self.pause()
        else:
            self.start()

    def adjust(self, delta_seconds: int) -> None:
        self.engine.adjust(delta_seconds)

    def apply_settings(self, settings: TimerSettings) -> None:
        """New durations; while idle this restarts the phase, ending any work in it."""
        if not self.engine.is_running:
            self._end_work_phase()
        self.engine.apply_settings(settings)

    def reset(self) -> None:
        """Reset the timer, logging an unfinished work phase as aborted."""
        self._end_work_phase()
        self.engine.reset()

    async def drain(self) -> None:
        """Wait for outstanding store writes."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def close(self) -> None:
        """Stop ticking and flush pending writes."""
        self.engine.close()
        await self.drain()

    # ----- Session logging internals -----
    def _end_work_phase(self) -> None:
        """Log the seconds actually counted down in this work phase as aborted."""
        elapsed = self.engine.elapsed_seconds
        if (
            self.engine.phase == TimerPhase.WORK
            and self._work_started_at is not None
            and elapsed >= 1
        ):
            self._record(elapsed, self._work_started_at, completed=False)
        self._work_started_at = None

    def _on_work_complete(self, work_seconds: int) -> None:
        started_at = self._work_started_at or utc_now() - timedelta(seconds=work_seconds)
        self._work_started_at = None
        self._record(work_seconds, started_at, completed=True)

    def _record(self, duration: int, started_at: datetime, completed: bool) -> None:
        if self.active_task_id is None:
            logger.info("No active task, focus interval not logged")
            return

        task = asyncio.get_running_loop().create_task(
            self._write_session(self.active_task_id, duration, started_at, completed)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_session(
        self, task_id: str, duration: int, started_at: datetime, completed: bool
    ) -> None:
        try:
            session = await self.sessions.create(
                SessionCreate(
                    task_id=task_id,
                    duration=duration,
                    start_time=started_at,
                    completed=completed,
                )
            )
            if completed:
                await self.tasks.increment_pomodoro_count(task_id)
        except Exception as e:
            logger.error(f"Failed to log focus session for task {task_id}: {e}")
            return

        self.recorded.append(session)
        logger.info(f"Logged {'completed' if completed else 'aborted'} session ({duration}s)")

        if self.on_session_recorded:
            try:
                self.on_session_recorded(session)
            except Exception as e:
                logger.error(f"Error in on_session_recorded callback: {e}")
