"""Pydantic schemas for tasks, sessions, and stats."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApiModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _clean_title(value: Any) -> Any:
    if value is None:
        raise ValueError("Task title is required")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("Task title is required")
    return value


class TaskSummary(ApiModel):
    """Task fields joined onto session records."""

    id: str
    title: str
    completed: bool = False
    pomodoro_count: int = Field(default=0, alias="pomodoroCount")


class Task(TaskSummary):
    """A persisted task."""

    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Task:
        return cls(
            id=row["id"],
            title=row["title"],
            completed=bool(row["completed"]),
            pomodoro_count=row["pomodoro_count"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def summary(self) -> TaskSummary:
        return TaskSummary(
            id=self.id,
            title=self.title,
            completed=self.completed,
            pomodoro_count=self.pomodoro_count,
        )


class TaskCreate(ApiModel):
    """Request body for creating a task."""

    title: str
    completed: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, value: Any) -> Any:
        return _clean_title(value)


class TaskUpdate(ApiModel):
    """Partial update; only the fields that were sent are applied."""

    title: str | None = None
    completed: bool | None = None
    pomodoro_count: int | None = Field(default=None, ge=0, alias="pomodoroCount")

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, value: Any) -> Any:
        return _clean_title(value)

    @field_validator("completed", "pomodoro_count", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class Session(ApiModel):
    """A logged focus interval, joined with its task."""

    id: str
    task_id: str = Field(alias="taskId")
    duration: int
    start_time: datetime = Field(alias="startTime")
    completed: bool = True
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    task: TaskSummary | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Session:
        task = None
        if row.get("t_id") is not None:
            task = TaskSummary(
                id=row["t_id"],
                title=row["t_title"],
                completed=bool(row["t_completed"]),
                pomodoro_count=row["t_pomodoro_count"],
            )
        return cls(
            id=row["id"],
            task_id=row["task_id"],
            duration=row["duration"],
            start_time=row["start_time"],
            completed=bool(row["completed"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            task=task,
        )


class SessionCreate(ApiModel):
    """Request body for logging a session."""

    task_id: str = Field(alias="taskId", min_length=1)
    duration: int = Field(ge=1, description="Duration in seconds")
    start_time: datetime = Field(alias="startTime")
    completed: bool = True


class Stats(ApiModel):
    """Productivity totals across all tasks and sessions."""

    total_pomodoros: int = Field(alias="totalPomodoros")
    total_minutes: int = Field(alias="totalMinutes")
    completed_tasks: int = Field(alias="completedTasks")
    active_tasks: int = Field(alias="activeTasks")


class DeletedTask(ApiModel):
    """Response body for a deleted task."""

    message: str = "Task deleted successfully"
    task: Task
