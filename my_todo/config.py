from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

import streamlit as st
from streamlit.errors import StreamlitSecretNotFoundError

BackendName = Literal["supabase", "local"]

DEFAULT_APP_BASE_URL = "http://localhost:8501"
DEFAULT_TODO_TABLE = "todos"
DEFAULT_SYNC_INTERVAL_SECONDS = 5.0


class ConfigError(ValueError):
    """Raised when the configured backend cannot be used."""


@dataclass(frozen=True)
class AppConfig:
    backend: BackendName
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    todo_table: str = DEFAULT_TODO_TABLE
    app_base_url: str = DEFAULT_APP_BASE_URL
    data_dir: Optional[str] = None
    sync_interval_seconds: float = DEFAULT_SYNC_INTERVAL_SECONDS
    celebration_sound_url: Optional[str] = None
    praise_api_url: Optional[str] = None

    @property
    def uses_supabase(self) -> bool:
        return self.backend == "supabase"


def get_secret(name: str) -> Optional[str]:
    try:
        value = st.secrets.get(name)
        if value:
            return str(value)
    except StreamlitSecretNotFoundError:
        value = None
    return os.getenv(name)


def _parse_interval(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_SYNC_INTERVAL_SECONDS
    try:
        return max(0.0, float(raw))
    except ValueError:
        return DEFAULT_SYNC_INTERVAL_SECONDS


def load_config() -> AppConfig:
    """Assemble the app configuration from secrets and environment variables."""

    supabase_url = get_secret("SUPABASE_URL")
    supabase_anon_key = get_secret("SUPABASE_ANON_KEY")

    requested_backend = (get_secret("TODO_BACKEND") or "").strip().lower()
    if requested_backend not in ("", "supabase", "local"):
        raise ConfigError(f"Unknown TODO_BACKEND '{requested_backend}'. Expected 'supabase' or 'local'.")

    backend: BackendName
    if requested_backend == "local":
        backend = "local"
    elif requested_backend == "supabase" or (supabase_url and supabase_anon_key):
        backend = "supabase"
    else:
        backend = "local"

    if backend == "supabase" and (not supabase_url or not supabase_anon_key):
        raise ConfigError("Supabase backend selected but SUPABASE_URL or SUPABASE_ANON_KEY is missing.")

    return AppConfig(
        backend=backend,
        supabase_url=supabase_url.rstrip("/") if supabase_url else None,
        supabase_anon_key=supabase_anon_key,
        todo_table=get_secret("TODO_TABLE") or DEFAULT_TODO_TABLE,
        app_base_url=get_secret("APP_BASE_URL") or DEFAULT_APP_BASE_URL,
        data_dir=get_secret("TODO_DATA_DIR"),
        sync_interval_seconds=_parse_interval(get_secret("TODO_SYNC_INTERVAL_SECONDS")),
        celebration_sound_url=get_secret("CELEBRATION_SOUND_URL"),
        praise_api_url=get_secret("PRAISE_API_URL"),
    )


__all__ = [
    "AppConfig",
    "BackendName",
    "ConfigError",
    "DEFAULT_APP_BASE_URL",
    "DEFAULT_SYNC_INTERVAL_SECONDS",
    "DEFAULT_TODO_TABLE",
    "get_secret",
    "load_config",
]
