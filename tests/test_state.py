from __future__ import annotations

from my_todo.constants import SS_PENDING_EFFECTS, SS_STORE
from my_todo.models import EffectKind, TodoItem
from my_todo.state import dispatch, get_store_state, init_state, pop_pending_effects, reset_state
from my_todo.store import OperationFailed, TodosLoaded


def test_init_state_sets_defaults(session_state: dict[str, object]) -> None:
    init_state()

    assert session_state[SS_PENDING_EFFECTS] == []
    state = get_store_state()
    assert state.todos == []
    assert state.is_loaded is False


def test_init_state_keeps_existing_store(session_state: dict[str, object]) -> None:
    session_state[SS_STORE] = {"todos": [{"id": "1", "text": "kept", "created_at": "2024-05-01T09:00:00Z"}]}

    init_state()

    assert [todo.text for todo in get_store_state().todos] == ["kept"]


def test_dispatch_queues_effects_until_popped(session_state: dict[str, object]) -> None:
    init_state()

    effects = dispatch(OperationFailed("delete", "gone"))

    assert [effect.kind for effect in effects] == [EffectKind.TOAST]
    assert [effect.kind for effect in pop_pending_effects()] == [EffectKind.TOAST]
    assert pop_pending_effects() == []


def test_reset_state_clears_store(session_state: dict[str, object]) -> None:
    dispatch(TodosLoaded([TodoItem(text="a")]))

    reset_state()

    assert get_store_state().todos == []
