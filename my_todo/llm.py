from __future__ import annotations

from typing import Optional

from openai import OpenAI, OpenAIError

from my_todo.config import get_secret

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class LLMError(RuntimeError):
    """Raised when a text generation call fails or returns an unusable payload."""


def _uses_gemini(base_url: Optional[str]) -> bool:
    return bool(base_url) and "generativelanguage.googleapis.com" in str(base_url)


def _resolve_credentials() -> tuple[Optional[str], Optional[str]]:
    api_key = get_secret("OPENAI_API_KEY")
    base_url = get_secret("OPENAI_BASE_URL")
    if api_key:
        return api_key, base_url

    gemini_key = get_secret("GEMINI_API_KEY")
    if gemini_key:
        return gemini_key, base_url or GEMINI_OPENAI_BASE_URL
    return None, base_url


def get_default_model() -> str:
    """Return the model name, allowing overrides via secrets/env."""

    configured_model = get_secret("OPENAI_MODEL")
    if configured_model:
        return configured_model
    _, base_url = _resolve_credentials()
    return DEFAULT_GEMINI_MODEL if _uses_gemini(base_url) else DEFAULT_MODEL


def get_openai_client() -> Optional[OpenAI]:
    """Create an OpenAI-compatible client from secrets or environment variables.

    ``GEMINI_API_KEY`` is honoured when no ``OPENAI_API_KEY`` is configured and
    routes through Gemini's OpenAI-compatible endpoint.
    """

    api_key, base_url = _resolve_credentials()
    if not api_key:
        return None

    client_kwargs: dict[str, str] = {"api_key": api_key}
    if base_url:
        client_kwargs["base_url"] = base_url

    return OpenAI(**client_kwargs)  # type: ignore[arg-type]


def request_text_response(*, client: OpenAI, model: str, prompt: str) -> str:
    """Send a single prompt and return the generated text. Makes exactly one attempt."""

    try:
        completion = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
        )
    except OpenAIError as exc:
        raise LLMError("Text generation request failed.") from exc
    except Exception as exc:  # noqa: BLE001
        raise LLMError("Unexpected error during text generation.") from exc

    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError) as exc:
        raise LLMError("Text generation returned no choices.") from exc

    if not isinstance(content, str) or not content.strip():
        raise LLMError("Text generation returned an empty message.")
    return content


__all__ = [
    "DEFAULT_GEMINI_MODEL",
    "DEFAULT_MODEL",
    "GEMINI_OPENAI_BASE_URL",
    "LLMError",
    "get_default_model",
    "get_openai_client",
    "request_text_response",
]
