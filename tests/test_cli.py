# tests/test_cli.py

from __future__ import annotations

import asyncio
import io
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml
from rich.console import Console
from typer.testing import CliRunner

from focustools.cli import main as cli_main
from focustools.cli.main import app, render_timer, run_focus
from focustools.core.config import Config, TimerSettings
from focustools.focus.timer import AsyncioTickSource, TimerPhase, TimerState
from focustools.storage.database import Database
from focustools.storage.models import Session, Task, TaskCreate
from focustools.storage.session_store import SessionStore
from focustools.storage.task_store import TaskStore

from .fakes import FakeTickSource

runner = CliRunner()


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "data_dir": str(tmp_path / "data"),
                "log_dir": str(tmp_path / "logs"),
                "config_dir": str(tmp_path),
            }
        )
    )
    return path


def invoke(config_file: Path, *args: str):
    return runner.invoke(app, ["--config", str(config_file), *args])


def stored_tasks(config_file: Path) -> list[Task]:
    async def fetch() -> list[Task]:
        db = Database(Config.load(config_file).db_path)
        await db.connect()
        try:
            return await TaskStore(db).list()
        finally:
            await db.close()

    return asyncio.run(fetch())


def stored_sessions(config_file: Path) -> list[Session]:
    async def fetch() -> list[Session]:
        db = Database(Config.load(config_file).db_path)
        await db.connect()
        try:
            return await SessionStore(db).list()
        finally:
            await db.close()

    return asyncio.run(fetch())


@pytest.fixture()
def fast_ticks(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make the focus command tick every millisecond instead of every second."""
    monkeypatch.setattr(cli_main, "AsyncioTickSource", lambda: AsyncioTickSource(interval=0.001))


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "FocusTools v" in result.output


def test_task_add_and_list(config_file: Path) -> None:
    added = invoke(config_file, "task-add", "Write tests")
    listed = invoke(config_file, "tasks")

    assert added.exit_code == 0, added.output
    assert "Added task" in added.output
    assert listed.exit_code == 0
    assert "Write tests" in listed.output
    assert [t.title for t in stored_tasks(config_file)] == ["Write tests"]


def test_task_add_rejects_blank_title(config_file: Path) -> None:
    result = invoke(config_file, "task-add", "   ")

    assert result.exit_code == 1
    assert "Error" in result.output
    assert stored_tasks(config_file) == []


def test_tasks_empty(config_file: Path) -> None:
    result = invoke(config_file, "tasks")

    assert result.exit_code == 0
    assert "No tasks yet" in result.output


def test_task_toggle_rename_delete(config_file: Path) -> None:
    invoke(config_file, "task-add", "Draft")
    task_id = stored_tasks(config_file)[0].id

    toggled = invoke(config_file, "task-toggle", task_id)
    renamed = invoke(config_file, "task-rename", task_id, "Final")

    assert toggled.exit_code == 0
    assert renamed.exit_code == 0
    task = stored_tasks(config_file)[0]
    assert task.completed is True
    assert task.title == "Final"

    deleted = invoke(config_file, "task-delete", task_id)
    assert deleted.exit_code == 0
    assert stored_tasks(config_file) == []


def test_unknown_task_exits_with_error(config_file: Path) -> None:
    result = invoke(config_file, "task-delete", "missing")

    assert result.exit_code == 1
    assert "Task not found" in result.output


def test_task_search(config_file: Path) -> None:
    invoke(config_file, "task-add", "Foobar")
    invoke(config_file, "task-add", "baz")

    result = invoke(config_file, "task-search", "FOO")

    assert result.exit_code == 0
    assert "Foobar" in result.output
    assert "baz" not in result.output


def test_invalid_sort_field_exits_with_error(config_file: Path) -> None:
    result = invoke(config_file, "tasks", "--sort-by", "nope")

    assert result.exit_code == 1
    assert "Invalid sort field" in result.output


def test_stats_on_empty_database(config_file: Path) -> None:
    result = invoke(config_file, "stats")

    assert result.exit_code == 0
    assert "Pomodoros" in result.output
    assert "0 min" in result.output


def test_config_set_and_reset(config_file: Path) -> None:
    result = invoke(config_file, "config-set", "--work", "45", "--no-sound")

    assert result.exit_code == 0, result.output
    config = Config.load(config_file)
    assert config.timer.work_minutes == 45
    assert config.timer.sound_enabled is False
    assert config.timer.break_minutes == 5

    invoke(config_file, "config-reset")
    config = Config.load(config_file)
    assert config.timer.work_minutes == 25
    assert config.timer.sound_enabled is True


def test_config_set_rejects_out_of_range(config_file: Path) -> None:
    result = invoke(config_file, "config-set", "--work", "61")

    assert result.exit_code != 0
    assert Config.load(config_file).timer.work_minutes == 25


def test_render_timer_shows_countdown_and_ring() -> None:
    now = datetime.now(timezone.utc)
    task = Task(id="t1", title="Write", created_at=now, updated_at=now)
    state = TimerState(
        phase=TimerPhase.BREAK, time_remaining_seconds=45, phase_length_seconds=60
    )
    out = io.StringIO()

    Console(file=out, width=100).print(render_timer(state, task))

    text = out.getvalue()
    assert "00:45" in text
    assert "Break Time" in text
    assert "Write - paused" in text
    assert text.count("█") == 45


def test_focus_logs_completed_session_and_credits_task(config_file: Path, fast_ticks) -> None:
    invoke(config_file, "task-add", "Deep work")
    task_id = stored_tasks(config_file)[0].id

    result = invoke(config_file, "focus", task_id, "--work", "1")

    assert result.exit_code == 0, result.output
    assert "Pomodoro complete!" in result.output
    sessions = stored_sessions(config_file)
    assert [(s.task_id, s.duration, s.completed) for s in sessions] == [(task_id, 60, True)]
    assert stored_tasks(config_file)[0].pomodoro_count == 1


def test_focus_with_break_runs_the_break_too(config_file: Path, fast_ticks) -> None:
    invoke(config_file, "task-add", "Deep work")
    task_id = stored_tasks(config_file)[0].id

    # Returns only after the auto-started break has also counted down.
    result = invoke(config_file, "focus", task_id, "--work", "1", "--break", "1", "--with-break")

    assert result.exit_code == 0, result.output
    assert "Pomodoro complete!" in result.output
    assert len(stored_sessions(config_file)) == 1


def test_focus_unknown_task_exits_with_error(config_file: Path, fast_ticks) -> None:
    result = invoke(config_file, "focus", "missing")

    assert result.exit_code == 1
    assert "Task not found" in result.output
    assert stored_sessions(config_file) == []


@pytest.mark.asyncio
async def test_cancelled_focus_logs_aborted_interval(
    config: Config, task_store: TaskStore, session_store: SessionStore
) -> None:
    task = await task_store.create(TaskCreate(title="Interrupted"))
    ticks = FakeTickSource()

    running = asyncio.create_task(
        run_focus(config, task.id, TimerSettings(work_minutes=25), tick_source=ticks)
    )
    for _ in range(200):
        if ticks.active:
            break
        await asyncio.sleep(0.01)
    ticks.fire(5)

    running.cancel()
    with pytest.raises(asyncio.CancelledError):
        await running

    sessions = await session_store.list()
    assert [(s.duration, s.completed) for s in sessions] == [(5, False)]
    assert (await task_store.get(task.id)).pomodoro_count == 0
