"""Task store state and its single update entry point.

All changes to the session's task collection go through :func:`reduce`, which
returns the next state plus the effect intents the UI shell should run. The
reducer never talks to the network, Streamlit or the clock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

from my_todo.gamification import celebration_effects, compute_level, count_completed
from my_todo.models import ChangeEvent, ChangeType, Effect, EffectKind, TodoFilter, TodoItem

Operation = Literal["load", "add", "delete", "toggle", "edit"]

OPERATION_ERROR_LABELS: dict[Operation, tuple[str, str]] = {
    "load": ("取得エラー", "Could not load tasks"),
    "add": ("追加エラー", "Could not add the task"),
    "delete": ("削除エラー", "Could not delete the task"),
    "toggle": ("更新エラー", "Could not update the task"),
    "edit": ("編集エラー", "Could not edit the task"),
}


class TodoStoreState(BaseModel):
    """Client-side view of the remote task collection."""

    todos: list[TodoItem] = Field(default_factory=list)
    filter: TodoFilter = TodoFilter.ALL
    is_adding: bool = False
    is_loaded: bool = False
    last_error: Optional[str] = None

    def find(self, todo_id: str) -> Optional[TodoItem]:
        for todo in self.todos:
            if todo.id == todo_id:
                return todo
        return None


@dataclass(frozen=True)
class TodosLoaded:
    todos: Sequence[TodoItem]


@dataclass(frozen=True)
class AddStarted:
    pass


@dataclass(frozen=True)
class TodoAdded:
    todo: TodoItem


@dataclass(frozen=True)
class TodoRemoved:
    todo_id: str


@dataclass(frozen=True)
class TodoToggled:
    todo_id: str
    completed: bool


@dataclass(frozen=True)
class TodoEdited:
    todo_id: str
    text: str


@dataclass(frozen=True)
class RemoteChangeReceived:
    event: ChangeEvent


@dataclass(frozen=True)
class OperationFailed:
    operation: Operation
    message: str


@dataclass(frozen=True)
class FilterChanged:
    filter: TodoFilter


@dataclass(frozen=True)
class StoreCleared:
    pass


Action = Union[
    TodosLoaded,
    AddStarted,
    TodoAdded,
    TodoRemoved,
    TodoToggled,
    TodoEdited,
    RemoteChangeReceived,
    OperationFailed,
    FilterChanged,
    StoreCleared,
]


@dataclass
class Transition:
    state: TodoStoreState
    effects: list[Effect] = field(default_factory=list)


def _upsert(todos: Sequence[TodoItem], record: TodoItem) -> list[TodoItem]:
    """Replace the record with the same id in place, or append it at the end."""

    updated = list(todos)
    for index, existing in enumerate(updated):
        if existing.id == record.id:
            updated[index] = record
            return updated
    updated.append(record)
    return updated


def _without(todos: Sequence[TodoItem], todo_id: str) -> list[TodoItem]:
    return [todo for todo in todos if todo.id != todo_id]


def _replace_existing(todos: Sequence[TodoItem], record: TodoItem) -> list[TodoItem]:
    return [record if todo.id == record.id else todo for todo in todos]


def _sorted_unique(todos: Sequence[TodoItem]) -> list[TodoItem]:
    latest_by_id: dict[str, TodoItem] = {}
    for todo in todos:
        latest_by_id[todo.id] = todo
    return sorted(latest_by_id.values(), key=lambda todo: todo.created_at)


def _apply_remote_change(state: TodoStoreState, event: ChangeEvent) -> TodoStoreState:
    if event.type is ChangeType.INSERT and event.record is not None:
        return state.model_copy(update={"todos": _upsert(state.todos, event.record)})

    if event.type is ChangeType.UPDATE and event.record is not None:
        return state.model_copy(update={"todos": _replace_existing(state.todos, event.record)})

    if event.type is ChangeType.DELETE:
        target_id = event.old_id or (event.record.id if event.record is not None else None)
        if target_id is None:
            return state
        return state.model_copy(update={"todos": _without(state.todos, target_id)})

    return state


def _toggle(state: TodoStoreState, action: TodoToggled) -> Transition:
    previous = state.find(action.todo_id)
    if previous is None:
        return Transition(state)

    updated_todo = previous.model_copy(update={"completed": action.completed})
    next_state = state.model_copy(
        update={"todos": _replace_existing(state.todos, updated_todo), "last_error": None}
    )

    if previous.completed or not action.completed:
        return Transition(next_state)

    before = compute_level(count_completed(state.todos))
    after = compute_level(count_completed(next_state.todos))
    return Transition(next_state, celebration_effects(updated_todo, before=before, after=after))


def reduce(state: TodoStoreState, action: Action) -> Transition:
    """Apply ``action`` to ``state`` and return the next state and effects."""

    if isinstance(action, TodosLoaded):
        return Transition(
            state.model_copy(
                update={"todos": _sorted_unique(action.todos), "is_loaded": True, "last_error": None}
            )
        )

    if isinstance(action, AddStarted):
        return Transition(state.model_copy(update={"is_adding": True}))

    if isinstance(action, TodoAdded):
        return Transition(
            state.model_copy(
                update={"todos": _upsert(state.todos, action.todo), "is_adding": False, "last_error": None}
            )
        )

    if isinstance(action, TodoRemoved):
        return Transition(
            state.model_copy(update={"todos": _without(state.todos, action.todo_id), "last_error": None})
        )

    if isinstance(action, TodoToggled):
        return _toggle(state, action)

    if isinstance(action, TodoEdited):
        current = state.find(action.todo_id)
        if current is None:
            return Transition(state)
        edited = current.model_copy(update={"text": action.text})
        return Transition(
            state.model_copy(update={"todos": _replace_existing(state.todos, edited), "last_error": None})
        )

    if isinstance(action, RemoteChangeReceived):
        # Completions observed from other sessions never celebrate here.
        return Transition(_apply_remote_change(state, action.event))

    if isinstance(action, OperationFailed):
        japanese, english = OPERATION_ERROR_LABELS[action.operation]
        toast = Effect(
            kind=EffectKind.TOAST,
            icon="⚠️",
            message=(f"{japanese}: {action.message}", f"{english}: {action.message}"),
        )
        return Transition(
            state.model_copy(update={"is_adding": False, "last_error": action.message}),
            [toast],
        )

    if isinstance(action, FilterChanged):
        return Transition(state.model_copy(update={"filter": action.filter}))

    if isinstance(action, StoreCleared):
        return Transition(TodoStoreState(filter=state.filter))

    raise TypeError(f"Unsupported store action: {action!r}")


__all__ = [
    "Action",
    "AddStarted",
    "FilterChanged",
    "OPERATION_ERROR_LABELS",
    "Operation",
    "OperationFailed",
    "RemoteChangeReceived",
    "StoreCleared",
    "TodoAdded",
    "TodoEdited",
    "TodoRemoved",
    "TodoStoreState",
    "TodoToggled",
    "TodosLoaded",
    "Transition",
    "reduce",
]
