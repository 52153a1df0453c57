"""Task operations: remote write first, then the matching store action.

Local state only changes after the remote call succeeded, so a failed write
never leaves the session ahead of the backend.
"""

from __future__ import annotations

import logging
from typing import Optional

from my_todo.filters import filter_todos
from my_todo.gamification import compute_level, count_completed
from my_todo.models import ChangeEvent, LevelInfo, TodoFilter, TodoItem
from my_todo.repository import RepositoryError, TodoRepository
from my_todo.state import dispatch, get_store_state
from my_todo.store import (
    AddStarted,
    FilterChanged,
    OperationFailed,
    RemoteChangeReceived,
    StoreCleared,
    TodoAdded,
    TodoEdited,
    TodoRemoved,
    TodosLoaded,
    TodoToggled,
)

LOGGER = logging.getLogger(__name__)


def load(repository: TodoRepository) -> bool:
    """Replace the session's tasks with a full read of the remote collection."""

    try:
        todos = repository.fetch_all()
    except RepositoryError as exc:
        LOGGER.warning("Loading tasks failed: %s", exc)
        dispatch(OperationFailed("load", str(exc)))
        return False

    dispatch(TodosLoaded(sorted(todos, key=lambda todo: todo.created_at)))
    return True


def add(repository: TodoRepository, text: str) -> Optional[TodoItem]:
    cleaned = text.strip()
    if not cleaned:
        return None

    dispatch(AddStarted())
    try:
        created = repository.insert(cleaned)
    except RepositoryError as exc:
        LOGGER.warning("Adding task failed: %s", exc)
        dispatch(OperationFailed("add", str(exc)))
        return None
    except Exception as exc:
        LOGGER.exception("Adding task failed unexpectedly")
        dispatch(OperationFailed("add", str(exc)))
        raise

    dispatch(TodoAdded(created))
    return created


def remove(repository: TodoRepository, todo_id: str) -> bool:
    if get_store_state().find(todo_id) is None:
        return False

    try:
        repository.delete(todo_id)
    except RepositoryError as exc:
        LOGGER.warning("Deleting task %s failed: %s", todo_id, exc)
        dispatch(OperationFailed("delete", str(exc)))
        return False

    dispatch(TodoRemoved(todo_id))
    return True


def toggle_complete(repository: TodoRepository, todo_id: str) -> Optional[TodoItem]:
    current = get_store_state().find(todo_id)
    if current is None:
        return None

    new_status = not current.completed
    try:
        repository.update(todo_id, completed=new_status)
    except RepositoryError as exc:
        LOGGER.warning("Updating task %s failed: %s", todo_id, exc)
        dispatch(OperationFailed("toggle", str(exc)))
        return None

    dispatch(TodoToggled(todo_id, new_status))
    return get_store_state().find(todo_id)


def edit_text(repository: TodoRepository, todo_id: str, new_text: str) -> Optional[TodoItem]:
    if get_store_state().find(todo_id) is None:
        return None

    try:
        repository.update(todo_id, text=new_text)
    except RepositoryError as exc:
        LOGGER.warning("Editing task %s failed: %s", todo_id, exc)
        dispatch(OperationFailed("edit", str(exc)))
        return None

    dispatch(TodoEdited(todo_id, new_text))
    return get_store_state().find(todo_id)


def on_remote_change(event: ChangeEvent) -> None:
    dispatch(RemoteChangeReceived(event))


def set_filter(todo_filter: TodoFilter) -> None:
    dispatch(FilterChanged(todo_filter))


def clear() -> None:
    dispatch(StoreCleared())


def visible_todos() -> list[TodoItem]:
    state = get_store_state()
    return filter_todos(state.todos, state.filter)


def current_level() -> LevelInfo:
    return compute_level(count_completed(get_store_state().todos))


__all__ = [
    "add",
    "clear",
    "current_level",
    "edit_text",
    "load",
    "on_remote_change",
    "remove",
    "set_filter",
    "toggle_complete",
    "visible_todos",
]
