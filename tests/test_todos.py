from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from my_todo import todos
from my_todo.models import ChangeEvent, ChangeType, EffectKind, TodoFilter, TodoItem
from my_todo.repository import RepositoryError
from my_todo.state import get_store_state, init_state, pop_pending_effects


class FakeRepository:
    def __init__(self, rows: Optional[list[TodoItem]] = None, *, fail: bool = False) -> None:
        self.rows: list[TodoItem] = list(rows or [])
        self.fail = fail
        self.calls: list[tuple[str, object]] = []
        self._clock = datetime(2024, 5, 1, tzinfo=timezone.utc)

    def _check(self) -> None:
        if self.fail:
            raise RepositoryError("backend unavailable")

    def fetch_all(self) -> list[TodoItem]:
        self.calls.append(("fetch_all", None))
        self._check()
        return list(self.rows)

    def insert(self, text: str) -> TodoItem:
        self.calls.append(("insert", text))
        self._check()
        self._clock += timedelta(minutes=1)
        created = TodoItem(id=str(len(self.rows) + 1), text=text, created_at=self._clock)
        self.rows.append(created)
        return created

    def delete(self, todo_id: str) -> None:
        self.calls.append(("delete", todo_id))
        self._check()
        self.rows = [row for row in self.rows if row.id != todo_id]

    def update(self, todo_id: str, *, text: Optional[str] = None, completed: Optional[bool] = None) -> None:
        self.calls.append(("update", (todo_id, text, completed)))
        self._check()


def _visible_count(todo_filter: TodoFilter) -> int:
    todos.set_filter(todo_filter)
    return len(todos.visible_todos())


def test_added_todo_is_visible_once_under_matching_filters(session_state: dict[str, object]) -> None:
    init_state()
    repository = FakeRepository()

    created = todos.add(repository, "Buy milk")

    assert created is not None
    assert _visible_count(TodoFilter.ALL) == 1
    assert _visible_count(TodoFilter.ACTIVE) == 1
    assert _visible_count(TodoFilter.COMPLETED) == 0
    assert get_store_state().is_adding is False


def test_add_strips_whitespace(session_state: dict[str, object]) -> None:
    repository = FakeRepository()

    created = todos.add(repository, "  Call mom  ")

    assert created is not None
    assert created.text == "Call mom"
    assert repository.calls == [("insert", "Call mom")]


def test_blank_text_is_rejected_without_remote_call(session_state: dict[str, object]) -> None:
    repository = FakeRepository()

    assert todos.add(repository, "   ") is None
    assert repository.calls == []
    assert get_store_state().todos == []


def test_failed_add_leaves_state_unchanged(session_state: dict[str, object]) -> None:
    existing = TodoItem(id="1", text="keep")
    repository = FakeRepository([existing])
    todos.load(repository)
    repository.fail = True

    assert todos.add(repository, "new") is None

    state = get_store_state()
    assert [todo.id for todo in state.todos] == ["1"]
    assert state.is_adding is False
    assert state.last_error == "backend unavailable"
    effects = pop_pending_effects()
    assert [effect.kind for effect in effects] == [EffectKind.TOAST]


def test_load_failure_keeps_previous_todos(session_state: dict[str, object]) -> None:
    repository = FakeRepository([TodoItem(id="1", text="first")])
    assert todos.load(repository) is True

    repository.fail = True
    assert todos.load(repository) is False

    assert [todo.id for todo in get_store_state().todos] == ["1"]


def test_toggle_complete_writes_remote_then_celebrates(session_state: dict[str, object]) -> None:
    repository = FakeRepository([TodoItem(id="1", text="Buy milk")])
    todos.load(repository)

    updated = todos.toggle_complete(repository, "1")

    assert updated is not None
    assert updated.completed is True
    assert repository.calls[-1] == ("update", ("1", None, True))
    kinds = [effect.kind for effect in pop_pending_effects()]
    assert EffectKind.CONFETTI in kinds
    assert kinds[-1] is EffectKind.PRAISE
    assert todos.current_level().progress_percent == 20


def test_failed_toggle_keeps_status(session_state: dict[str, object]) -> None:
    repository = FakeRepository([TodoItem(id="1", text="Buy milk")])
    todos.load(repository)
    repository.fail = True

    assert todos.toggle_complete(repository, "1") is None

    assert get_store_state().find("1").completed is False
    kinds = [effect.kind for effect in pop_pending_effects()]
    assert EffectKind.CONFETTI not in kinds


def test_unknown_ids_are_ignored(session_state: dict[str, object]) -> None:
    repository = FakeRepository()

    assert todos.remove(repository, "nope") is False
    assert todos.toggle_complete(repository, "nope") is None
    assert todos.edit_text(repository, "nope", "x") is None
    assert repository.calls == []


def test_remove_and_edit(session_state: dict[str, object]) -> None:
    repository = FakeRepository([TodoItem(id="1", text="old"), TodoItem(id="2", text="other")])
    todos.load(repository)

    assert todos.edit_text(repository, "1", "new").text == "new"
    assert todos.remove(repository, "2") is True

    assert [(todo.id, todo.text) for todo in get_store_state().todos] == [("1", "new")]


def test_remote_insert_for_own_record_is_ignored(session_state: dict[str, object]) -> None:
    repository = FakeRepository()
    created = todos.add(repository, "Buy milk")
    assert created is not None

    todos.on_remote_change(ChangeEvent(type=ChangeType.INSERT, record=created))

    assert len(get_store_state().todos) == 1


def test_clear_empties_store(session_state: dict[str, object]) -> None:
    repository = FakeRepository([TodoItem(id="1", text="a")])
    todos.load(repository)

    todos.clear()

    state = get_store_state()
    assert state.todos == []
    assert state.is_loaded is False


def test_failed_remove_keeps_record(session_state: dict[str, object]) -> None:
    repository = FakeRepository([TodoItem(id="1", text="keep")])
    todos.load(repository)
    repository.fail = True

    assert todos.remove(repository, "1") is False

    assert [(todo.id, todo.text) for todo in get_store_state().todos] == [("1", "keep")]
    assert [effect.kind for effect in pop_pending_effects()] == [EffectKind.TOAST]


def test_failed_edit_keeps_text(session_state: dict[str, object]) -> None:
    repository = FakeRepository([TodoItem(id="1", text="keep")])
    todos.load(repository)
    repository.fail = True

    assert todos.edit_text(repository, "1", "changed") is None

    assert [(todo.id, todo.text) for todo in get_store_state().todos] == [("1", "keep")]
    assert [effect.kind for effect in pop_pending_effects()] == [EffectKind.TOAST]


def test_unexpected_insert_error_releases_add_control(session_state: dict[str, object]) -> None:
    class BrokenRepository(FakeRepository):
        def insert(self, text: str) -> TodoItem:
            raise ValueError("bad row")

    with pytest.raises(ValueError):
        todos.add(BrokenRepository(), "Buy milk")

    state = get_store_state()
    assert state.is_adding is False
    assert state.todos == []
