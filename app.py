from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import streamlit as st

from my_todo import todos
from my_todo.auth import (
    AuthError,
    clear_session,
    get_session,
    is_expired,
    local_session,
    refresh_session,
    set_session,
    sign_out,
)
from my_todo.config import AppConfig, ConfigError, load_config
from my_todo.constants import LOAD_ATTEMPTED_KEY
from my_todo.i18n import LANGUAGE_OPTIONS, get_language, set_language, translate_text
from my_todo.models import AuthSession
from my_todo.repository import LocalTodoRepository, RepositoryError, SupabaseTodoRepository, TodoRepository
from my_todo.state import get_store_state, init_state, pop_pending_effects
from my_todo.storage import FileStorageBackend
from my_todo.supabase_client import SupabaseClient
from my_todo.ui.auth import handle_oauth_callback, render_login_view
from my_todo.ui.common import get_http_client, inject_styles, run_effects
from my_todo.ui.tasks import (
    render_filter_selector,
    render_gamification_panel,
    render_input,
    render_sync_fragment,
    render_todo_list,
)

LOGGER = logging.getLogger(__name__)


@st.cache_resource
def _local_repository(data_dir: Optional[str]) -> LocalTodoRepository:
    return LocalTodoRepository(FileStorageBackend(Path(data_dir) if data_dir else None))


def _supabase_client(config: AppConfig, session: Optional[AuthSession] = None) -> SupabaseClient:
    return SupabaseClient(
        str(config.supabase_url),
        str(config.supabase_anon_key),
        access_token=session.access_token if session else None,
        client=get_http_client(),
    )


def _build_repository(config: AppConfig, session: AuthSession) -> TodoRepository:
    if config.uses_supabase:
        return SupabaseTodoRepository(_supabase_client(config, session), table=config.todo_table)
    return _local_repository(config.data_dir)


def _resolve_session(config: AppConfig) -> Optional[AuthSession]:
    if not config.uses_supabase:
        session = get_session()
        if session is None:
            session = local_session()
            set_session(session)
        return session

    client = _supabase_client(config)
    handle_oauth_callback(client)

    session = get_session()
    if session is None or not is_expired(session):
        return session

    try:
        refreshed = refresh_session(client, session)
    except AuthError as exc:
        LOGGER.warning("Session refresh failed: %s", exc)
        clear_session()
        todos.clear()
        st.session_state.pop(LOAD_ATTEMPTED_KEY, None)
        st.warning(translate_text(("セッションの有効期限が切れました。", "Your session has expired.")))
        return None

    set_session(refreshed)
    return refreshed


def _logout(config: AppConfig, session: AuthSession) -> None:
    if config.uses_supabase:
        sign_out(_supabase_client(config), session)
    clear_session()
    todos.clear()
    st.session_state.pop(LOAD_ATTEMPTED_KEY, None)


def render_language_toggle() -> None:
    labels = list(LANGUAGE_OPTIONS)
    current = get_language()
    codes = list(LANGUAGE_OPTIONS.values())
    selected = st.sidebar.selectbox("Language / 言語", labels, index=codes.index(current))
    set_language(LANGUAGE_OPTIONS[selected])


def render_header(config: AppConfig, session: AuthSession) -> None:
    title_col, logout_col = st.columns([0.75, 0.25])
    title_col.title("My Todo")
    title_col.caption(session.display_name)
    if config.uses_supabase:
        logout_col.button(
            translate_text(("ログアウト", "Sign out")),
            key="logout_button",
            on_click=_logout,
            args=(config, session),
        )


def main() -> None:
    st.set_page_config(page_title="My Todo", page_icon="✅", layout="centered")
    inject_styles()
    init_state()
    render_language_toggle()

    try:
        config = load_config()
    except ConfigError as exc:
        st.error(str(exc))
        return

    run_effects(pop_pending_effects(), config=config)

    session = _resolve_session(config)
    if session is None:
        render_login_view(config)
        return

    try:
        repository = _build_repository(config, session)
    except RepositoryError as exc:
        LOGGER.warning("Task storage unavailable: %s", exc)
        st.error(str(exc))
        return

    if not get_store_state().is_loaded and not st.session_state.get(LOAD_ATTEMPTED_KEY):
        st.session_state[LOAD_ATTEMPTED_KEY] = True
        todos.load(repository)
        run_effects(pop_pending_effects(), config=config)

    render_header(config, session)
    render_input(repository)
    render_filter_selector()
    render_todo_list(repository)
    render_gamification_panel(todos.current_level())
    render_sync_fragment(repository, interval_seconds=config.sync_interval_seconds)


if __name__ == "__main__":
    main()
