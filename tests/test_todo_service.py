"""
Tests for the todo store adapter.
"""
import pytest

from nikovplan.services.exceptions import StoreNotConfiguredError, StoreReadError, StoreWriteError
from nikovplan.services.todos import DemoTodoService


@pytest.mark.asyncio
async def test_add_then_list_in_creation_order(todo_service):
    first = await todo_service.add("buy milk")
    second = await todo_service.add("call mom")

    todos = await todo_service.list()

    assert [t.id for t in todos] == [first.id, second.id]
    assert all(not t.completed for t in todos)


@pytest.mark.asyncio
async def test_update_and_delete(todo_service):
    todo = await todo_service.add("buy milk")

    await todo_service.update(todo.id, True)
    assert (await todo_service.list())[0].completed is True

    await todo_service.delete(todo.id)
    assert await todo_service.list() == []


@pytest.mark.asyncio
async def test_errors_are_mapped(todo_service, fake_store):
    fake_store.fail("GET", "todos")
    fake_store.fail("POST", "todos")

    with pytest.raises(StoreReadError):
        await todo_service.list()
    with pytest.raises(StoreWriteError):
        await todo_service.add("buy milk")


@pytest.mark.asyncio
async def test_demo_todos_are_empty_and_read_only():
    service = DemoTodoService()

    assert await service.list() == []
    with pytest.raises(StoreNotConfiguredError):
        await service.add("buy milk")
