from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from my_todo.models import ChangeEvent, ChangeType, TodoItem
from my_todo.repository import RepositoryError, TodoRepository

LOGGER = logging.getLogger(__name__)


class ChangeFeedError(ValueError):
    """Raised when a change payload cannot be understood."""


def _first_mapping(payload: Mapping[str, Any], *keys: str) -> Mapping[str, Any] | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, Mapping) and value:
            return value
    return None


def parse_change_payload(payload: Mapping[str, Any]) -> ChangeEvent:
    """Convert a Supabase row-change payload into a :class:`ChangeEvent`.

    Accepts the client library shape (``eventType``/``new``/``old``), the raw
    channel shape nested under ``data`` and the database webhook shape
    (``type``/``record``/``old_record``).
    """

    body = payload.get("data") if isinstance(payload.get("data"), Mapping) else payload
    raw_type = body.get("eventType") or body.get("type")
    if not isinstance(raw_type, str):
        raise ChangeFeedError("Change payload has no event type.")

    try:
        change_type = ChangeType(raw_type.lower())
    except ValueError as exc:
        raise ChangeFeedError(f"Unsupported change type '{raw_type}'.") from exc

    new_row = _first_mapping(body, "new", "record")
    old_row = _first_mapping(body, "old", "old_record")

    if change_type is ChangeType.DELETE:
        old_id = old_row.get("id") if old_row else None
        if old_id is None:
            raise ChangeFeedError("Delete payload carries no identifier.")
        return ChangeEvent(type=change_type, old_id=str(old_id))

    if new_row is None:
        raise ChangeFeedError(f"{change_type.value} payload carries no record.")
    try:
        record = TodoItem.model_validate(dict(new_row))
    except ValidationError as exc:
        raise ChangeFeedError("Change payload record is not a valid task.") from exc
    return ChangeEvent(type=change_type, record=record)


def diff_snapshots(previous: Sequence[TodoItem], current: Sequence[TodoItem]) -> list[ChangeEvent]:
    """Describe how ``current`` differs from ``previous`` as change events.

    Deletes come first, then updates, then inserts in the order they appear in
    ``current``.
    """

    previous_by_id = {todo.id: todo for todo in previous}
    current_ids = {todo.id for todo in current}

    events: list[ChangeEvent] = [
        ChangeEvent(type=ChangeType.DELETE, old_id=todo_id) for todo_id in previous_by_id if todo_id not in current_ids
    ]
    for todo in current:
        before = previous_by_id.get(todo.id)
        if before is not None and before != todo:
            events.append(ChangeEvent(type=ChangeType.UPDATE, record=todo))
    for todo in current:
        if todo.id not in previous_by_id:
            events.append(ChangeEvent(type=ChangeType.INSERT, record=todo))
    return events


def poll_changes(repository: TodoRepository, known: Sequence[TodoItem]) -> list[ChangeEvent]:
    """Read the task collection once and describe how it differs from ``known``.

    A failed read is logged and reported as no change.
    """

    try:
        current = repository.fetch_all()
    except RepositoryError as exc:
        LOGGER.warning("Change feed poll failed: %s", exc)
        return []
    return diff_snapshots(known, current)


__all__ = ["ChangeFeedError", "diff_snapshots", "parse_change_payload", "poll_changes"]
