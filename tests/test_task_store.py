# tests/test_task_store.py

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from focustools.errors import NotFoundError, ValidationError
from focustools.storage.models import TaskCreate, TaskUpdate
from focustools.storage.task_store import TaskStore


async def add(store: TaskStore, title: str, completed: bool = False):
    return await store.create(TaskCreate(title=title, completed=completed))


def test_task_create_rejects_empty_title() -> None:
    for title in ("", "   "):
        with pytest.raises(PydanticValidationError):
            TaskCreate(title=title)

    with pytest.raises(PydanticValidationError):
        TaskCreate.model_validate({})


@pytest.mark.asyncio
async def test_create_defaults(task_store: TaskStore) -> None:
    task = await add(task_store, "  Write report ")

    assert task.title == "Write report"
    assert task.completed is False
    assert task.pomodoro_count == 0
    assert task.created_at == task.updated_at
    assert await task_store.get(task.id) == task


@pytest.mark.asyncio
async def test_get_unknown_raises_not_found(task_store: TaskStore) -> None:
    with pytest.raises(NotFoundError):
        await task_store.get("nope")


@pytest.mark.asyncio
async def test_list_filters_by_completion(task_store: TaskStore) -> None:
    await add(task_store, "a")
    await add(task_store, "b", completed=True)
    await add(task_store, "c")

    assert [t.title for t in await task_store.list()] == ["a", "b", "c"]
    assert [t.title for t in await task_store.list(completed=True)] == ["b"]
    assert [t.title for t in await task_store.list(completed=False)] == ["a", "c"]


@pytest.mark.asyncio
async def test_list_sorts_by_field_and_direction(task_store: TaskStore) -> None:
    await add(task_store, "banana")
    await add(task_store, "apple")
    cherry = await add(task_store, "cherry")
    await task_store.increment_pomodoro_count(cherry.id)

    assert [t.title for t in await task_store.list(sort_by="title")] == [
        "apple", "banana", "cherry",
    ]
    assert [t.title for t in await task_store.list(sort_by="title", order="desc")] == [
        "cherry", "banana", "apple",
    ]
    by_count = await task_store.list(sort_by="pomodoroCount", order="desc")
    assert by_count[0].title == "cherry"


@pytest.mark.asyncio
async def test_list_rejects_unknown_sort_field(task_store: TaskStore) -> None:
    with pytest.raises(ValidationError):
        await task_store.list(sort_by="title; DROP TABLE tasks")


@pytest.mark.asyncio
async def test_search_is_case_insensitive_substring(task_store: TaskStore) -> None:
    await add(task_store, "Foobar")
    await add(task_store, "baz")

    result = await task_store.search("foo")
    assert [t.title for t in result] == ["Foobar"]

    assert [t.title for t in await task_store.search("A")] == ["Foobar", "baz"]


@pytest.mark.asyncio
async def test_search_requires_query(task_store: TaskStore) -> None:
    with pytest.raises(ValidationError):
        await task_store.search("")
    with pytest.raises(ValidationError):
        await task_store.search(None)


@pytest.mark.asyncio
async def test_update_applies_only_sent_fields(task_store: TaskStore) -> None:
    task = await add(task_store, "draft")

    updated = await task_store.update(task.id, TaskUpdate.model_validate({"completed": True}))
    assert updated.completed is True
    assert updated.title == "draft"

    updated = await task_store.update(task.id, TaskUpdate.model_validate({"pomodoroCount": 4}))
    assert updated.pomodoro_count == 4
    assert updated.completed is True


def test_task_update_validation() -> None:
    with pytest.raises(PydanticValidationError):
        TaskUpdate.model_validate({"title": ""})
    with pytest.raises(PydanticValidationError):
        TaskUpdate.model_validate({"pomodoroCount": -1})
    with pytest.raises(PydanticValidationError):
        TaskUpdate.model_validate({"completed": None})


@pytest.mark.asyncio
async def test_update_unknown_raises_not_found(task_store: TaskStore) -> None:
    with pytest.raises(NotFoundError):
        await task_store.update("nope", TaskUpdate(completed=True))


@pytest.mark.asyncio
async def test_delete_returns_removed_task(task_store: TaskStore) -> None:
    task = await add(task_store, "temp")

    removed = await task_store.delete(task.id)

    assert removed.id == task.id
    assert await task_store.find(task.id) is None


@pytest.mark.asyncio
async def test_delete_unknown_changes_nothing(task_store: TaskStore) -> None:
    await add(task_store, "keep")

    with pytest.raises(NotFoundError):
        await task_store.delete("missing")

    assert await task_store.count() == 1


@pytest.mark.asyncio
async def test_toggle_complete_flips(task_store: TaskStore) -> None:
    task = await add(task_store, "flip")

    assert (await task_store.toggle_complete(task.id)).completed is True
    assert (await task_store.toggle_complete(task.id)).completed is False


@pytest.mark.asyncio
async def test_rename_only_persists_real_changes(task_store: TaskStore) -> None:
    task = await add(task_store, "old")

    assert (await task_store.rename(task.id, "   ")).title == "old"
    unchanged = await task_store.rename(task.id, "old")
    assert unchanged.updated_at == task.updated_at

    renamed = await task_store.rename(task.id, " new ")
    assert renamed.title == "new"


@pytest.mark.asyncio
async def test_increment_pomodoro_count(task_store: TaskStore) -> None:
    task = await add(task_store, "count me")

    await task_store.increment_pomodoro_count(task.id)
    task = await task_store.increment_pomodoro_count(task.id)

    assert task.pomodoro_count == 2
    with pytest.raises(NotFoundError):
        await task_store.increment_pomodoro_count("missing")
