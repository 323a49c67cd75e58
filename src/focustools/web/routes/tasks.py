"""Task CRUD routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from focustools.storage.models import DeletedTask, Session, Task, TaskCreate, TaskUpdate
from focustools.storage.session_store import SessionStore
from focustools.storage.task_store import TaskStore
from focustools.web.app import get_session_store, get_task_store

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=Task, status_code=201)
async def create_task(
    data: TaskCreate,
    tasks: TaskStore = Depends(get_task_store),
) -> Task:
    return await tasks.create(data)


@router.get("/search", response_model=list[Task])
async def search_tasks(
    q: str | None = Query(None, description="Case-insensitive title substring"),
    tasks: TaskStore = Depends(get_task_store),
) -> list[Task]:
    return await tasks.search(q)


@router.get("", response_model=list[Task])
async def list_tasks(
    completed: str | None = Query(None, description="'true' for completed tasks only"),
    sort_by: str | None = Query(None, alias="sortBy"),
    order: str | None = Query(None, description="asc or desc"),
    tasks: TaskStore = Depends(get_task_store),
) -> list[Task]:
    """List tasks, optionally filtered by completion and sorted."""
    completed_filter = None if completed is None else completed == "true"
    return await tasks.list(completed=completed_filter, sort_by=sort_by, order=order)


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: str, tasks: TaskStore = Depends(get_task_store)) -> Task:
    return await tasks.get(task_id)


@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    tasks: TaskStore = Depends(get_task_store),
) -> Task:
    return await tasks.update(task_id, data)


@router.delete("/{task_id}", response_model=DeletedTask)
async def delete_task(task_id: str, tasks: TaskStore = Depends(get_task_store)) -> DeletedTask:
    task = await tasks.delete(task_id)
    return DeletedTask(task=task)


@router.get("/{task_id}/sessions", response_model=list[Session])
async def get_task_sessions(
    task_id: str,
    sessions: SessionStore = Depends(get_session_store),
) -> list[Session]:
    """Session history for one task."""
    return await sessions.list_for_task(task_id)
