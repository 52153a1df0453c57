"""Japanese/English text selection driven by the sidebar language toggle."""

from __future__ import annotations

from typing import Literal

import streamlit as st

LanguageCode = Literal["ja", "en"]
DEFAULT_LANGUAGE: LanguageCode = "ja"
LANGUAGE_KEY = "language"
LANGUAGE_OPTIONS: dict[str, LanguageCode] = {"日本語": "ja", "English": "en"}

BilingualText = str | tuple[str, str]


def get_language() -> LanguageCode:
    """Return the active language, storing the Japanese default on first access."""

    language = st.session_state.get(LANGUAGE_KEY)
    if language in ("ja", "en"):
        return language

    st.session_state[LANGUAGE_KEY] = DEFAULT_LANGUAGE
    return DEFAULT_LANGUAGE


def set_language(language: LanguageCode) -> None:
    st.session_state[LANGUAGE_KEY] = language


def translate_text(text: BilingualText) -> str:
    """Pick the variant for the active language.

    A ``(japanese, english)`` tuple is resolved against the toggle; plain
    strings (user content, model output) pass through untouched.
    """

    if isinstance(text, tuple):
        japanese, english = text
        return japanese if get_language() == "ja" else english
    return text


__all__ = [
    "BilingualText",
    "DEFAULT_LANGUAGE",
    "LANGUAGE_KEY",
    "LANGUAGE_OPTIONS",
    "LanguageCode",
    "get_language",
    "set_language",
    "translate_text",
]
