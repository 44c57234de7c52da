"""
Todo Endpoints
==============

Owner-scoped CRUD for todos. Every route requires a valid bearer token.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_todo_store
from api.models.requests import TodoPayload
from api.models.responses import TodoListResponse, TodoResponse
from api.services.owned_records import TodoStore
from models import Identity, Todo

router = APIRouter()


@router.post("/todos", response_model=Todo)
async def create_todo(
    payload: Optional[TodoPayload] = None,
    user: Identity = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store)
):
    """
    Create a todo owned by the caller.

    Raises:
        400: Missing or empty text
    """
    fields = payload.fields() if payload else {}
    return await todos.create(user, fields)


@router.get("/todos", response_model=TodoListResponse)
async def list_todos(
    user: Identity = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store)
):
    """List the caller's todos."""
    return TodoListResponse(todos=await todos.list(user))


@router.get("/todos/{todo_id}", response_model=TodoResponse)
async def get_todo(
    todo_id: str,
    user: Identity = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store)
):
    """
    Get one of the caller's todos.

    Raises:
        404: Invalid id, no such todo, or owned by another user
    """
    return TodoResponse(todo=await todos.get(user, todo_id))


@router.patch("/todos/{todo_id}", response_model=TodoResponse)
async def update_todo(
    todo_id: str,
    payload: Optional[TodoPayload] = None,
    user: Identity = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store)
):
    """
    Update text and/or completion of one of the caller's todos.

    completedAt is derived: completed=true stamps the current time,
    otherwise the todo is marked not completed.

    Raises:
        404: Invalid id, no such todo, or owned by another user
        400: Invalid field values
    """
    fields = payload.fields() if payload else {}
    return TodoResponse(todo=await todos.update(user, todo_id, fields))


@router.delete("/todos/{todo_id}", response_model=TodoResponse)
async def delete_todo(
    todo_id: str,
    user: Identity = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store)
):
    """
    Permanently delete one of the caller's todos and return it.

    Raises:
        404: Invalid id, no such todo, or owned by another user
    """
    return TodoResponse(todo=await todos.remove(user, todo_id))
