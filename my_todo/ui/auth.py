from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

import streamlit as st

from my_todo.auth import (
    AuthError,
    PendingLogins,
    build_authorize_url,
    exchange_code_for_session,
    set_session,
)
from my_todo.config import AppConfig
from my_todo.constants import LOGIN_STATE_QUERY_PARAM
from my_todo.i18n import translate_text
from my_todo.supabase_client import SupabaseClient

LOGGER = logging.getLogger(__name__)

LOGIN_URL_KEY = "login_authorize_url"


@st.cache_resource
def get_pending_logins() -> PendingLogins:
    return PendingLogins()


def _login_url(config: AppConfig) -> str:
    pending = get_pending_logins()
    cached = st.session_state.get(LOGIN_URL_KEY)
    if isinstance(cached, dict) and datetime.now(timezone.utc) - cached["issued_at"] < pending.ttl:
        return str(cached["url"])

    nonce, challenge = pending.start()
    redirect_to = f"{config.app_base_url.rstrip('/')}/?{urlencode({LOGIN_STATE_QUERY_PARAM: nonce})}"
    url = build_authorize_url(str(config.supabase_url), redirect_to=redirect_to, code_challenge=challenge)
    st.session_state[LOGIN_URL_KEY] = {"url": url, "issued_at": datetime.now(timezone.utc)}
    return url


def handle_oauth_callback(client: SupabaseClient) -> bool:
    """Finish a GitHub sign-in when the page was opened by the OAuth redirect."""

    code = st.query_params.get("code")
    nonce = st.query_params.get(LOGIN_STATE_QUERY_PARAM)
    if not code:
        return False

    st.query_params.clear()
    verifier = get_pending_logins().complete(nonce) if nonce else None
    if verifier is None:
        st.error(
            translate_text(
                (
                    "ログインの有効期限が切れました。もう一度お試しください。",
                    "The sign-in attempt expired. Please try again.",
                )
            )
        )
        return False

    try:
        session = exchange_code_for_session(client, code=code, code_verifier=verifier)
    except AuthError as exc:
        LOGGER.warning("OAuth code exchange failed: %s", exc)
        st.error(translate_text(("ログインに失敗しました。", "Sign-in failed.")) + f" ({exc})")
        return False

    st.session_state.pop(LOGIN_URL_KEY, None)
    set_session(session)
    return True


def render_login_view(config: AppConfig, *, error: Optional[str] = None) -> None:
    st.title(translate_text(("ようこそ Todoアプリへ", "Welcome to the Todo app")))
    st.caption(translate_text(("使うにはログインしてください", "Please sign in to continue")))
    if error:
        st.error(error)

    st.link_button(
        translate_text(("GitHubでログイン", "Sign in with GitHub")),
        _login_url(config),
        type="primary",
    )
