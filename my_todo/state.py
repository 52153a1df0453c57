from __future__ import annotations

from typing import Any, List

import streamlit as st

from my_todo.constants import SS_PENDING_EFFECTS, SS_STORE
from my_todo.models import Effect
from my_todo.store import Action, TodoStoreState, reduce

__all__ = [
    "dispatch",
    "get_store_state",
    "init_state",
    "pop_pending_effects",
    "reset_state",
    "save_store_state",
]


def _coerce_store(raw: Any) -> TodoStoreState:
    if isinstance(raw, TodoStoreState):
        return raw
    if raw is None:
        return TodoStoreState()
    return TodoStoreState.model_validate(raw)


def init_state() -> None:
    """Initialize all required session state keys if they are missing."""

    if SS_STORE not in st.session_state:
        st.session_state[SS_STORE] = TodoStoreState().model_dump()
    else:
        st.session_state[SS_STORE] = _coerce_store(st.session_state.get(SS_STORE)).model_dump()

    st.session_state.setdefault(SS_PENDING_EFFECTS, [])


def get_store_state() -> TodoStoreState:
    return _coerce_store(st.session_state.get(SS_STORE))


def save_store_state(state: TodoStoreState) -> None:
    st.session_state[SS_STORE] = state.model_dump()


def dispatch(action: Action) -> List[Effect]:
    """Run ``action`` through the reducer, store the result and queue its effects."""

    transition = reduce(get_store_state(), action)
    save_store_state(transition.state)
    if transition.effects:
        queued = list(st.session_state.get(SS_PENDING_EFFECTS, []))
        queued.extend(effect.model_dump() for effect in transition.effects)
        st.session_state[SS_PENDING_EFFECTS] = queued
    return transition.effects


def pop_pending_effects() -> List[Effect]:
    raw_effects = st.session_state.get(SS_PENDING_EFFECTS, [])
    st.session_state[SS_PENDING_EFFECTS] = []
    return [Effect.model_validate(raw) for raw in raw_effects]


def reset_state() -> None:
    """Clear managed keys and restore defaults."""

    for key in (SS_STORE, SS_PENDING_EFFECTS):
        if key in st.session_state:
            del st.session_state[key]
    init_state()
