from __future__ import annotations

from typing import Sequence

from my_todo.models import TodoFilter, TodoItem

EMPTY_MESSAGES: dict[TodoFilter, tuple[str, str]] = {
    TodoFilter.ALL: ("タスクはまだありません。最初のタスクを追加しましょう！", "No tasks yet. Add your first one!"),
    TodoFilter.ACTIVE: ("未完了のタスクはありません。", "No active tasks."),
    TodoFilter.COMPLETED: ("完了したタスクはありません。", "No completed tasks."),
}


def ensure_filter(value: TodoFilter | str | None) -> TodoFilter:
    if isinstance(value, TodoFilter):
        return value
    try:
        return TodoFilter(str(value))
    except ValueError:
        return TodoFilter.ALL


def matches_filter(todo: TodoItem, todo_filter: TodoFilter) -> bool:
    if todo_filter is TodoFilter.ACTIVE:
        return not todo.completed
    if todo_filter is TodoFilter.COMPLETED:
        return todo.completed
    return True


def filter_todos(todos: Sequence[TodoItem], todo_filter: TodoFilter | str) -> list[TodoItem]:
    """Return the tasks visible under ``todo_filter``, keeping their order."""

    active_filter = ensure_filter(todo_filter)
    return [todo for todo in todos if matches_filter(todo, active_filter)]


def empty_message(todo_filter: TodoFilter | str) -> tuple[str, str]:
    return EMPTY_MESSAGES[ensure_filter(todo_filter)]


__all__ = ["EMPTY_MESSAGES", "empty_message", "ensure_filter", "filter_todos", "matches_filter"]
