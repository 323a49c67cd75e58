"""Pomodoro timer state machine with configurable durations."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from focustools.core.config import TimerSettings

logger = logging.getLogger(__name__)

ADJUST_STEP_SECONDS = 30
RING_SEGMENTS = 60
# The ring empties clockwise starting from this segment
RING_START_SEGMENT = 1


class TimerPhase(Enum):
    """Current phase of the Pomodoro timer."""
    WORK = "work"
    BREAK = "break"


class TimerStatus(Enum):
    """Combined running/phase state."""
    IDLE_WORK = "idle-work"
    RUNNING_WORK = "running-work"
    IDLE_BREAK = "idle-break"
    RUNNING_BREAK = "running-break"


def filled_segments(
    remaining_seconds: int, phase_length: int, segments: int = RING_SEGMENTS
) -> int:
    """Number of ring segments still lit for the remaining time."""
    if phase_length <= 0:
        return 0
    return remaining_seconds * segments // phase_length


def ring_segments(
    filled: int, segments: int = RING_SEGMENTS, start: int = RING_START_SEGMENT
) -> list[bool]:
    """Lit/unlit flag for each ring segment, index 0 at twelve o'clock."""
    disappeared = segments - filled
    return [
        (index - start + segments) % segments >= disappeared
        for index in range(segments)
    ]


@dataclass
class TimerState:
    """Snapshot of the timer."""
    phase: TimerPhase = TimerPhase.WORK
    is_running: bool = False
    time_remaining_seconds: int = 25 * 60
    phase_length_seconds: int = 25 * 60
    pomodoros_completed: int = 0

    @property
    def is_break(self) -> bool:
        return self.phase == TimerPhase.BREAK

    @property
    def status(self) -> TimerStatus:
        if self.phase == TimerPhase.WORK:
            return TimerStatus.RUNNING_WORK if self.is_running else TimerStatus.IDLE_WORK
        return TimerStatus.RUNNING_BREAK if self.is_running else TimerStatus.IDLE_BREAK

    @property
    def time_remaining_display(self) -> str:
        """Format time remaining as MM:SS."""
        minutes, seconds = divmod(self.time_remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def filled_segments(self) -> int:
        return filled_segments(self.time_remaining_seconds, self.phase_length_seconds)

    @property
    def progress_percent(self) -> float:
        """Progress through current phase (0-100)."""
        elapsed = self.phase_length_seconds - self.time_remaining_seconds
        return min(100, max(0, (elapsed / self.phase_length_seconds) * 100))


class TickHandle(Protocol):
    def cancel(self) -> None: ...


class TickSource(Protocol):
    """Something that calls back once per second until cancelled."""

    def schedule(self, callback: Callable[[], None]) -> TickHandle: ...


class _LoopTick:
    """Repeating ``call_at`` on an event loop, re-armed against a fixed deadline."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._deadline = loop.time() + interval
        self._handle: asyncio.TimerHandle | None = loop.call_at(self._deadline, self._fire)

    def _fire(self) -> None:
        if self._handle is None:
            return
        self._deadline += self._interval
        self._handle = self._loop.call_at(self._deadline, self._fire)
        self._callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioTickSource:
    """Tick source backed by the running asyncio event loop."""

    def __init__(self, interval: float = 1.0, loop: asyncio.AbstractEventLoop | None = None):
        self.interval = interval
        self._loop = loop

    def schedule(self, callback: Callable[[], None]) -> TickHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _LoopTick(loop, self.interval, callback)


class TimerEngine:
    """Pomodoro countdown with Idle/Running x Work/Break states.

    All operations are synchronous. While running, the engine holds one
    subscription on its tick source; every exit from Running releases it.
    Without a tick source the caller drives ``tick()`` itself.

    Usage:
        engine = TimerEngine(TimerSettings(work_minutes=25), AsyncioTickSource())
        engine.on_work_complete = lambda seconds: print(f"{seconds}s of focus done")

        engine.start()
        engine.pause()
        engine.adjust(+30)
        engine.reset()
    """

    def __init__(
        self,
        settings: TimerSettings | None = None,
        tick_source: TickSource | None = None,
        cue: Callable[[], None] | None = None,
    ):
        self.settings = settings or TimerSettings()
        self._tick_source = tick_source
        self._cue = cue
        self._tick: TickHandle | None = None
        self._running = False
        self._pending_settings: TimerSettings | None = None

        self._phase = TimerPhase.WORK
        self._remaining = self.settings.work_seconds
        self._elapsed = 0
        self._pomodoros_completed = 0

        # Callbacks
        self.on_tick: Callable[[TimerState], None] | None = None
        self.on_work_complete: Callable[[int], None] | None = None
        self.on_phase_change: Callable[[TimerState], None] | None = None

    @property
    def state(self) -> TimerState:
        """Get current timer state (copy)."""
        return TimerState(
            phase=self._phase,
            is_running=self.is_running,
            time_remaining_seconds=self._remaining,
            phase_length_seconds=self.phase_length,
            pomodoros_completed=self._pomodoros_completed,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def elapsed_seconds(self) -> int:
        """Seconds counted down by ticks in the current phase; adjustments excluded."""
        return self._elapsed

    @property
    def phase_length(self) -> int:
        return self._phase_length(self._phase)

    @property
    def pending_settings(self) -> TimerSettings | None:
        return self._pending_settings

    def _phase_length(self, phase: TimerPhase) -> int:
        if phase == TimerPhase.WORK:
            return self.settings.work_seconds
        return self.settings.break_seconds

    def start(self) -> None:
        """Start or resume the countdown. Does nothing at zero."""
        if self.is_running or self._remaining <= 0:
            return

        self._running = True
        if self._tick_source is not None:
            self._tick = self._tick_source.schedule(self.tick)

        logger.info(f"Timer started: {self._phase.value} ({self.state.time_remaining_display})")

    def pause(self) -> None:
        """Pause the countdown, keeping the remaining time."""
        if not self.is_running:
            return
        self._stop()
        logger.info(f"Timer paused: {self._phase.value} ({self.state.time_remaining_display})")

    def toggle(self) -> None:
        if self.is_running:
            self.pause()
        else:
            self.start()

    def reset(self) -> None:
        """Return to an idle, full-length work phase."""
        self._stop()
        self._apply_pending_settings()
        self._phase = TimerPhase.WORK
        self._remaining = self.settings.work_seconds
        self._elapsed = 0
        logger.info("Timer reset")

    def close(self) -> None:
        """Release the tick source; the engine stays usable."""
        self._stop()

    def tick(self) -> bool:
        """Advance one second. Returns True if the phase changed on this tick.

        The completing tick is published through ``on_phase_change`` only, so
        ``on_tick`` never sees a running timer at zero.
        """
        if not self.is_running:
            return False

        if self._remaining > 0:
            self._remaining -= 1
            self._elapsed += 1

        if self._remaining <= 0:
            self._complete_phase()
            return True

        if self.on_tick:
            try:
                self.on_tick(self.state)
            except Exception as e:
                logger.error(f"Error in on_tick callback: {e}")
        return False

    def adjust(self, delta_seconds: int = ADJUST_STEP_SECONDS) -> None:
        """Add or remove time, clamped to [0, phase length].

        Reaching zero this way only completes the phase when
        ``complete_on_zero_adjust`` is set; otherwise a running timer stops
        and stays at zero until reset or topped up.
        """
        self._remaining = max(0, min(self._remaining + delta_seconds, self.phase_length))

        if self._remaining == 0:
            if self.settings.complete_on_zero_adjust:
                self._complete_phase()
            elif self.is_running:
                self._stop()
                logger.info("Timer stopped at zero by adjustment")

    def apply_settings(self, settings: TimerSettings) -> None:
        """Take new durations.

        While idle, the remaining time becomes the full length of the current
        phase. While running the change waits for the next phase boundary.
        """
        if self.is_running:
            self._pending_settings = settings
            logger.debug("Timer running, settings change deferred")
            return

        self._pending_settings = None
        self.settings = settings
        self._remaining = self.phase_length
        self._elapsed = 0

    def _stop(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None
        self._running = False

    def _apply_pending_settings(self) -> None:
        if self._pending_settings is not None:
            self.settings = self._pending_settings
            self._pending_settings = None

    def _play_cue(self) -> None:
        if not self.settings.sound_enabled or self._cue is None:
            return
        try:
            self._cue()
        except Exception as e:
            logger.debug(f"Notification cue failed: {e}")

    def _complete_phase(self) -> None:
        """Handle phase completion and transition."""
        completed_phase = self._phase
        work_seconds = self.phase_length

        self._stop()
        self._play_cue()

        if completed_phase == TimerPhase.WORK:
            self._pomodoros_completed += 1
            if self.on_work_complete:
                try:
                    self.on_work_complete(work_seconds)
                except Exception as e:
                    logger.error(f"Error in on_work_complete callback: {e}")
            self._phase = TimerPhase.BREAK
            logger.info("Work phase complete! Break is ready")
        else:
            self._phase = TimerPhase.WORK
            logger.info("Break complete! Work phase is ready")

        self._apply_pending_settings()
        self._remaining = self.phase_length
        self._elapsed = 0

        if self.on_phase_change:
            try:
                self.on_phase_change(self.state)
            except Exception as e:
                logger.error(f"Error in on_phase_change callback: {e}")
