"""Best-effort notification cue for phase completion."""

from __future__ import annotations

from rich.console import Console


class TerminalBell:
    """Rings the terminal bell through Rich."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def __call__(self) -> None:
        self.console.bell()
