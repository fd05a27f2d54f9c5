"""
Todo Service
Flat to-do list stored in the Supabase ``todos`` table
"""
import logging
from typing import List, Optional, Union

import httpx

from nikovplan.config.supabase import SimpleSupabaseClient, SupabaseError
from nikovplan.models.todo import TodoItem
from nikovplan.services.exceptions import StoreNotConfiguredError, StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

TODOS_TABLE = "todos"


class TodoService:
    """Todo store adapter. Errors propagate; retrying is up to the caller."""

    def __init__(self, client: SimpleSupabaseClient):
        self.client = client

    async def list(self) -> List[TodoItem]:
        try:
            rows = await self.client.query(TODOS_TABLE, "GET", select="*", order="created_at.asc")
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error fetching todos: {str(e)}")
            raise StoreReadError("Could not fetch todos") from e
        return [TodoItem.from_row(row) for row in rows or []]

    async def add(self, text: str) -> TodoItem:
        """Insert a new, uncompleted todo. Callers reject blank text before this."""
        try:
            rows = await self.client.query(
                TODOS_TABLE,
                "POST",
                data={"text": text, "completed": False},
                select="id,text,completed",
            )
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error adding todo: {str(e)}")
            raise StoreWriteError("Could not add todo") from e

        row = rows[0] if isinstance(rows, list) and rows else rows
        if not row or "id" not in row:
            raise StoreWriteError("Store did not return the new todo")
        return TodoItem.from_row(row)

    async def update(self, todo_id: str, completed: bool) -> None:
        try:
            await self.client.query(TODOS_TABLE, "PATCH", data={"completed": completed}, filters={"id": todo_id})
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error updating todo {todo_id}: {str(e)}")
            raise StoreWriteError(f"Could not update todo {todo_id}") from e

    async def delete(self, todo_id: str) -> None:
        try:
            await self.client.query(TODOS_TABLE, "DELETE", filters={"id": todo_id})
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error deleting todo {todo_id}: {str(e)}")
            raise StoreWriteError(f"Could not delete todo {todo_id}") from e


class DemoTodoService:
    """Empty, read-only list used when Supabase is not configured"""

    async def list(self) -> List[TodoItem]:
        return []

    async def add(self, text: str) -> TodoItem:
        raise StoreNotConfiguredError("Supabase is not configured")

    async def update(self, todo_id: str, completed: bool) -> None:
        raise StoreNotConfiguredError("Supabase is not configured")

    async def delete(self, todo_id: str) -> None:
        raise StoreNotConfiguredError("Supabase is not configured")


def get_todo_service(client: Optional[SimpleSupabaseClient]) -> Union[TodoService, DemoTodoService]:
    if client is None:
        return DemoTodoService()
    return TodoService(client)
