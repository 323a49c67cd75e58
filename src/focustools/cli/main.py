"""CLI commands for FocusTools using Typer."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from focustools import __version__
from focustools.core.config import Config, TimerSettings, get_config
from focustools.errors import FocusToolsError
from focustools.focus.cue import TerminalBell
from focustools.focus.session import FocusSession
from focustools.focus.timer import (
    AsyncioTickSource,
    TickSource,
    TimerPhase,
    TimerState,
    ring_segments,
)
from focustools.storage.database import Database, open_database
from focustools.storage.models import Session, Task, TaskCreate
from focustools.storage.session_store import SessionStore
from focustools.storage.stats import StatsAggregator
from focustools.storage.task_store import TaskStore

T = TypeVar("T")

app = typer.Typer(
    name="focustools",
    help="Task list with a Pomodoro focus timer.",
    add_completion=False,
)

console = Console()

# Set by the --config option
_config_path: Path | None = None


def setup_logging(log_level: str, log_file: Path | None = None) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )

    # Reduce noise from external libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def load_config() -> Config:
    if _config_path is not None:
        return Config.load(_config_path)
    return get_config()


def run_with_db(action: Callable[[Database], Awaitable[T]]) -> T:
    """Open the database, run ``action``, and turn store errors into exit code 1."""
    config = load_config()

    async def runner() -> T:
        db = await open_database(config.db_path)
        try:
            return await action(db)
        finally:
            await db.close()

    try:
        return asyncio.run(runner())
    except FocusToolsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def task_table(tasks: list[Task], title: str = "Tasks") -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Done", justify="center")
    table.add_column("🍅", justify="right")

    for task in tasks:
        table.add_row(
            task.id,
            f"[strike]{task.title}[/strike]" if task.completed else task.title,
            "[green]✓[/green]" if task.completed else "",
            str(task.pomodoro_count) if task.pomodoro_count else "",
        )
    return table


def session_table(sessions: list[Session], title: str = "Sessions") -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Started")
    table.add_column("Task")
    table.add_column("Duration", justify="right")
    table.add_column("Completed", justify="center")

    for session in sessions:
        minutes, seconds = divmod(session.duration, 60)
        table.add_row(
            session.start_time.astimezone().strftime("%Y-%m-%d %H:%M"),
            session.task.title if session.task else "[dim](deleted)[/dim]",
            f"{minutes}m {seconds:02d}s",
            "[green]✓[/green]" if session.completed else "[yellow]aborted[/yellow]",
        )
    return table


@app.command()
def serve(
    host: str = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(None, "--port", "-p", help="Port to bind to"),
) -> None:
    """Run the REST API server."""
    config = load_config()

    host = host or config.web.host
    port = port or config.web.port

    console.print("[green]Starting FocusTools API...[/green]")
    console.print(f"Listening on [blue]http://{host}:{port}{config.web.api_prefix}[/blue]")
    console.print("Press Ctrl+C to stop\n")

    from focustools.web.app import run_server

    try:
        run_server(config, host=host, port=port)
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"FocusTools v{__version__}")


@app.command(name="config-show")
def config_show() -> None:
    """Show current configuration."""
    config = load_config()

    table = Table(title="FocusTools Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("[bold]Paths[/bold]", "")
    table.add_row("  Data Directory", str(config.data_dir))
    table.add_row("  Log Directory", str(config.log_dir))
    table.add_row("  Config File", str(config.config_file))
    table.add_row("  Database", str(config.db_path))

    table.add_row("[bold]Timer[/bold]", "")
    table.add_row("  Work", f"{config.timer.work_minutes} min")
    table.add_row("  Break", f"{config.timer.break_minutes} min")
    table.add_row("  Sound", str(config.timer.sound_enabled))
    table.add_row("  Complete on zero adjust", str(config.timer.complete_on_zero_adjust))

    table.add_row("[bold]API[/bold]", "")
    table.add_row("  URL", f"http://{config.web.host}:{config.web.port}{config.web.api_prefix}")

    console.print(table)


@app.command(name="config-set")
def config_set(
    work: int = typer.Option(None, "--work", "-w", min=1, max=60, help="Work minutes (1-60)"),
    brk: int = typer.Option(None, "--break", "-b", min=1, max=30, help="Break minutes (1-30)"),
    sound: bool = typer.Option(None, "--sound/--no-sound", help="Notification cue"),
) -> None:
    """Change timer settings and save them to the config file."""
    config = load_config()

    changes: dict[str, Any] = {}
    if work is not None:
        changes["work_minutes"] = work
    if brk is not None:
        changes["break_minutes"] = brk
    if sound is not None:
        changes["sound_enabled"] = sound

    if not changes:
        console.print("[yellow]Nothing to change[/yellow]")
        return

    config.timer = config.timer.model_copy(update=changes)
    path = config.save(_config_path)
    get_config.cache_clear()
    console.print(f"[green]Saved timer settings to {path}[/green]")


@app.command(name="config-reset")
def config_reset() -> None:
    """Restore default timer settings."""
    config = load_config()
    config.timer = TimerSettings()
    path = config.save(_config_path)
    get_config.cache_clear()
    console.print(f"[green]Timer settings reset to defaults ({path})[/green]")


@app.command()
def tasks(
    completed: bool = typer.Option(None, "--completed/--active", help="Filter by completion"),
    sort_by: str = typer.Option(None, "--sort-by", "-s", help="Field to sort by"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
) -> None:
    """List tasks."""
    result = run_with_db(
        lambda db: TaskStore(db).list(
            completed=completed, sort_by=sort_by, order="desc" if desc else "asc"
        )
    )
    if not result:
        console.print("[dim]No tasks yet. Add one with 'focustools task-add'.[/dim]")
        return
    console.print(task_table(result))


@app.command(name="task-add")
def task_add(title: str = typer.Argument(..., help="Task title")) -> None:
    """Create a task."""

    async def create(db: Database) -> Task:
        try:
            data = TaskCreate(title=title)
        except ValidationError as e:
            raise FocusToolsError(f"Invalid task: {e.errors()[0]['msg']}") from e
        return await TaskStore(db).create(data)

    task = run_with_db(create)
    console.print(f"[green]Added task[/green] {task.title} [dim]({task.id})[/dim]")


@app.command(name="task-toggle")
def task_toggle(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Flip a task between done and not done."""
    task = run_with_db(lambda db: TaskStore(db).toggle_complete(task_id))
    state = "[green]done[/green]" if task.completed else "[yellow]not done[/yellow]"
    console.print(f"{task.title}: {state}")


@app.command(name="task-rename")
def task_rename(
    task_id: str = typer.Argument(..., help="Task ID"),
    title: str = typer.Argument(..., help="New title"),
) -> None:
    """Rename a task."""
    task = run_with_db(lambda db: TaskStore(db).rename(task_id, title))
    console.print(f"Task is now: {task.title}")


@app.command(name="task-delete")
def task_delete(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Delete a task."""
    task = run_with_db(lambda db: TaskStore(db).delete(task_id))
    console.print(f"[green]Deleted task[/green] {task.title}")


@app.command(name="task-search")
def task_search(query: str = typer.Argument(..., help="Text to look for in titles")) -> None:
    """Find tasks whose title contains the query (case-insensitive)."""
    result = run_with_db(lambda db: TaskStore(db).search(query))
    if not result:
        console.print(f"[dim]No tasks match '{query}'[/dim]")
        return
    console.print(task_table(result, title=f"Tasks matching '{query}'"))


@app.command(name="task-sessions")
def task_sessions(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Show the session history of one task."""
    result = run_with_db(lambda db: SessionStore(db).list_for_task(task_id))
    if not result:
        console.print("[dim]No sessions logged for this task[/dim]")
        return
    console.print(session_table(result))


@app.command()
def sessions(
    sort_by: str = typer.Option("date", "--sort-by", "-s", help="Field to sort by ('date' = start time)"),
    desc: bool = typer.Option(True, "--desc/--asc", help="Sort direction"),
) -> None:
    """List logged focus sessions."""
    result = run_with_db(
        lambda db: SessionStore(db).list(sort_by=sort_by, order="desc" if desc else "asc")
    )
    if not result:
        console.print("[dim]No sessions logged yet[/dim]")
        return
    console.print(session_table(result))


@app.command()
def stats() -> None:
    """Show productivity totals."""
    result = run_with_db(lambda db: StatsAggregator(db).compute())

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Pomodoros", str(result.total_pomodoros))
    table.add_row("Focus time", f"{result.total_minutes} min")
    table.add_row("Completed tasks", str(result.completed_tasks))
    table.add_row("Active tasks", str(result.active_tasks))

    console.print(Panel(table, title="FocusTools Stats", border_style="green"))


def render_timer(state: TimerState, task: Task) -> Panel:
    """Countdown panel with the 60-segment ring flattened into a bar."""
    color = "green" if state.is_break else "red"
    label = "☕ Break Time" if state.is_break else "🍅 Focus Time"

    bar = Text()
    for lit in ring_segments(state.filled_segments):
        bar.append("█" if lit else "·", style=color if lit else "dim")

    status = "running" if state.is_running else "paused"
    body = Group(
        Text(state.time_remaining_display, style=f"bold {color}", justify="center"),
        bar,
        Text(f"{task.title} - {status}", style="dim", justify="center"),
    )
    return Panel(body, title=label, border_style=color)


async def run_focus(
    config: Config,
    task_id: str,
    settings: TimerSettings,
    with_break: bool = False,
    tick_source: TickSource | None = None,
) -> list[Session]:
    """Run one work phase (and optionally its break) for a task in a Live panel.

    Cancelling the coroutine (Ctrl+C under ``asyncio.run``) resets the timer,
    which logs the elapsed work as an aborted session before the writes are
    drained and the database is closed.
    """
    db = await open_database(config.db_path)

    session = FocusSession(
        TaskStore(db),
        SessionStore(db),
        settings=settings,
        tick_source=tick_source or AsyncioTickSource(),
        cue=TerminalBell(console),
    )
    finished = asyncio.Event()

    try:
        task = await session.tasks.get(task_id)
        await session.select_task(task.id)

        with Live(render_timer(session.state, task), console=console, refresh_per_second=4) as live:

            def on_phase_change(state: TimerState) -> None:
                live.update(render_timer(state, task))
                if with_break and state.phase == TimerPhase.BREAK:
                    session.start()
                else:
                    finished.set()

            session.engine.on_tick = lambda state: live.update(render_timer(state, task))
            session.engine.on_phase_change = on_phase_change
            session.start()
            live.update(render_timer(session.state, task))
            try:
                await finished.wait()
            finally:
                if not finished.is_set():
                    session.reset()
        return session.recorded
    finally:
        await session.close()
        await db.close()


@app.command()
def focus(
    task_id: str = typer.Argument(..., help="Task to credit with the focus interval"),
    work: int = typer.Option(None, "--work", "-w", min=1, max=60, help="Override work minutes"),
    brk: int = typer.Option(None, "--break", "-b", min=1, max=30, help="Override break minutes"),
    with_break: bool = typer.Option(False, "--with-break", help="Run the break after the work phase"),
) -> None:
    """Run a focus interval for a task.

    Press Ctrl+C to abort; the elapsed time is logged as an aborted session.
    """
    config = load_config()
    changes: dict[str, Any] = {}
    if work is not None:
        changes["work_minutes"] = work
    if brk is not None:
        changes["break_minutes"] = brk
    settings = config.timer.model_copy(update=changes)

    try:
        recorded = asyncio.run(run_focus(config, task_id, settings, with_break))
    except KeyboardInterrupt:
        console.print("\n[yellow]Focus interval aborted[/yellow]")
        return
    except FocusToolsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print("[green]Pomodoro complete![/green]")
    if recorded:
        console.print(session_table(recorded, title="Logged"))


@app.callback()
def main_callback(
    config_path: Path = typer.Option(
        None, "--config", "-c", envvar="FOCUSTOOLS_CONFIG", help="Path to config.yaml"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level"),
) -> None:
    """FocusTools - task list with a Pomodoro focus timer."""
    global _config_path
    _config_path = config_path
    setup_logging(log_level)


if __name__ == "__main__":
    app()
