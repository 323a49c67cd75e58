"""Focus timer and the controller that logs finished intervals."""

from focustools.focus.cue import TerminalBell
from focustools.focus.session import FocusSession
from focustools.focus.timer import (
    AsyncioTickSource,
    TimerEngine,
    TimerPhase,
    TimerState,
    TimerStatus,
    filled_segments,
    ring_segments,
)

__all__ = [
    "AsyncioTickSource",
    "FocusSession",
    "TerminalBell",
    "TimerEngine",
    "TimerPhase",
    "TimerState",
    "TimerStatus",
    "filled_segments",
    "ring_segments",
]
