from __future__ import annotations

from typing import Callable, Iterable, Optional

import httpx
import streamlit as st

from my_todo.config import AppConfig
from my_todo.i18n import translate_text
from my_todo.models import Effect, EffectKind, PraiseResult
from my_todo.praise import fetch_praise_from_api, generate_praise
from my_todo.supabase_client import DEFAULT_TIMEOUT_SECONDS

PraiseFn = Callable[[str, str], PraiseResult]


@st.cache_resource
def get_http_client() -> httpx.Client:
    """Process-wide HTTP connection pool shared by the backend and praise calls."""

    return httpx.Client(timeout=DEFAULT_TIMEOUT_SECONDS)


def inject_styles() -> None:
    st.markdown(
        """
        <style>
            .block-container {
                max-width: 760px;
                padding-top: 1.5rem;
            }

            .todo-text {
                font-size: 1.1rem;
                color: #1f2937;
            }

            .todo-text.done {
                color: #9ca3af;
                text-decoration: line-through;
            }

            .todo-created {
                font-size: 0.75rem;
                color: #9ca3af;
                margin-left: 0.25rem;
            }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _default_praise_fn(config: AppConfig) -> PraiseFn:
    if config.praise_api_url:
        api_url = config.praise_api_url
        return lambda task_text, level_title: fetch_praise_from_api(
            task_text, level_title, api_url=api_url, client=get_http_client()
        )
    return lambda task_text, level_title: generate_praise(task_text, level_title)


def run_effects(effects: Iterable[Effect], *, config: AppConfig, praise_fn: Optional[PraiseFn] = None) -> None:
    """Execute effect intents queued by store transitions."""

    request_praise = praise_fn or _default_praise_fn(config)
    for effect in effects:
        if effect.kind is EffectKind.CONFETTI:
            st.balloons()
        elif effect.kind is EffectKind.SOUND:
            if config.celebration_sound_url:
                st.audio(config.celebration_sound_url, autoplay=True)
        elif effect.kind is EffectKind.TOAST:
            st.toast(translate_text(effect.message), icon=effect.icon)
        elif effect.kind is EffectKind.PRAISE:
            with st.spinner(translate_text(("AI執事が褒め言葉を考えています…", "Your AI butler is thinking…"))):
                result = request_praise(effect.task_text, effect.level_title)
            st.toast(result.message, icon="🤖" if result.ok else "🎉")
