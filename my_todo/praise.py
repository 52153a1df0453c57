from __future__ import annotations

import logging
from typing import Optional

import httpx
from openai import OpenAI

from my_todo.constants import FALLBACK_PRAISE_MESSAGE
from my_todo.llm import LLMError, get_default_model, get_openai_client, request_text_response
from my_todo.models import PraiseResult

LOGGER = logging.getLogger(__name__)

PRAISE_MAX_CHARS = 30


def build_praise_prompt(task_text: str, level_title: str) -> str:
    return (
        "あなたはユーザーをサポートする、親しみやすいAI執事です。\n"
        "ユーザーが以下のタスクを完了しました。\n\n"
        f"タスク名: 「{task_text}」\n"
        f"現在の称号: 「{level_title}」\n\n"
        f"このユーザーを、1文だけ（長くても{PRAISE_MAX_CHARS}文字程度）で、シンプルに短く褒めてください。\n"
        "長文は絶対に避け、サクッとテンポ良くテンションが上がる一言をお願いします！"
    )


def generate_praise(
    task_text: str,
    level_title: str,
    *,
    client: Optional[OpenAI] = None,
    model: Optional[str] = None,
) -> PraiseResult:
    """Ask the text model for a one-line congratulation.

    Never raises: without a configured client or on any generation failure the
    fixed fallback message is returned with ``ok=False``.
    """

    client_to_use = client or get_openai_client()
    if client_to_use is None:
        LOGGER.warning("No text generation key configured; using fallback praise.")
        return PraiseResult(message=FALLBACK_PRAISE_MESSAGE, ok=False)

    try:
        message = request_text_response(
            client=client_to_use,
            model=model or get_default_model(),
            prompt=build_praise_prompt(task_text, level_title),
        )
    except LLMError as exc:
        LOGGER.warning("Praise generation failed: %s (cause: %r)", exc, exc.__cause__)
        return PraiseResult(message=FALLBACK_PRAISE_MESSAGE, ok=False)

    return PraiseResult(message=message, ok=True)


def fetch_praise_from_api(
    task_text: str,
    level_title: str,
    *,
    api_url: str,
    client: Optional[httpx.Client] = None,
    timeout: float = 15.0,
) -> PraiseResult:
    """Call a running ``POST /api/praise`` endpoint instead of the model directly."""

    owns_client = client is None
    http_client = client or httpx.Client(timeout=timeout)
    try:
        response = http_client.post(
            f"{api_url.rstrip('/')}/api/praise",
            json={"taskText": task_text, "levelTitle": level_title},
            timeout=timeout,
        )
        payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        LOGGER.warning("Praise endpoint unreachable: %s", exc)
        return PraiseResult(message=FALLBACK_PRAISE_MESSAGE, ok=False)
    finally:
        if owns_client:
            http_client.close()

    message = payload.get("message") if isinstance(payload, dict) else None
    if not isinstance(message, str) or not message:
        return PraiseResult(message=FALLBACK_PRAISE_MESSAGE, ok=False)
    return PraiseResult(message=message, ok=response.status_code == 200)


__all__ = ["PRAISE_MAX_CHARS", "build_praise_prompt", "fetch_praise_from_api", "generate_praise"]
