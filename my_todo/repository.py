from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, Sequence

from pydantic import ValidationError

from my_todo.models import TodoItem
from my_todo.storage import TODOS_KEY, FileStorageBackend, StorageBackend
from my_todo.supabase_client import SupabaseClient, SupabaseError

LOGGER = logging.getLogger(__name__)


class RepositoryError(RuntimeError):
    """Raised when the remote task collection cannot be read or written."""


class TodoRepository(Protocol):
    """Remote source of truth for the task collection."""

    def fetch_all(self) -> list[TodoItem]:
        """Return every task ordered by creation time, oldest first."""

    def insert(self, text: str) -> TodoItem:
        """Create a task and return the stored record."""

    def delete(self, todo_id: str) -> None:
        """Remove the task with ``todo_id``."""

    def update(self, todo_id: str, *, text: Optional[str] = None, completed: Optional[bool] = None) -> None:
        """Write the given fields of the task with ``todo_id``."""


def _update_payload(text: Optional[str], completed: Optional[bool]) -> dict[str, object]:
    payload: dict[str, object] = {}
    if text is not None:
        payload["text"] = text
    if completed is not None:
        payload["completed"] = completed
    return payload


def _parse_rows(rows: Any) -> list[TodoItem]:
    if not isinstance(rows, list):
        raise RepositoryError("Unexpected response format from the task table.")
    try:
        return [TodoItem.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise RepositoryError("Task table returned an invalid row.") from exc


class SupabaseTodoRepository:
    """Tasks stored in a Supabase table; row-level security scopes them to the signed-in user."""

    def __init__(self, client: SupabaseClient, *, table: str = "todos") -> None:
        self._client = client
        self.table = table

    def fetch_all(self) -> list[TodoItem]:
        try:
            rows = self._client.rest("GET", self.table, params={"select": "*", "order": "created_at.asc"})
        except SupabaseError as exc:
            raise RepositoryError(str(exc)) from exc
        return _parse_rows(rows)

    def insert(self, text: str) -> TodoItem:
        try:
            rows = self._client.rest(
                "POST",
                self.table,
                json=[{"text": text, "completed": False}],
                headers={"Prefer": "return=representation"},
            )
        except SupabaseError as exc:
            raise RepositoryError(str(exc)) from exc

        created = _parse_rows(rows)
        if not created:
            raise RepositoryError("Insert returned no row.")
        return created[0]

    def delete(self, todo_id: str) -> None:
        try:
            self._client.rest("DELETE", self.table, params={"id": f"eq.{todo_id}"})
        except SupabaseError as exc:
            raise RepositoryError(str(exc)) from exc

    def update(self, todo_id: str, *, text: Optional[str] = None, completed: Optional[bool] = None) -> None:
        payload = _update_payload(text, completed)
        if not payload:
            return
        try:
            self._client.rest("PATCH", self.table, params={"id": f"eq.{todo_id}"}, json=payload)
        except SupabaseError as exc:
            raise RepositoryError(str(exc)) from exc


class LocalTodoRepository:
    """Tasks kept in a JSON file under a fixed key, for running without a backend.

    The file is read once when the repository is created and rewritten after
    every change.
    """

    def __init__(self, backend: StorageBackend | None = None) -> None:
        self._backend = backend or FileStorageBackend()
        self._todos: list[TodoItem] = self._read()

    def _read(self) -> list[TodoItem]:
        try:
            stored = self._backend.read_document()
        except (OSError, ValueError) as exc:
            raise RepositoryError(f"Local task file could not be read: {exc}") from exc

        raw_todos = stored.get(TODOS_KEY, [])
        if not isinstance(raw_todos, list):
            LOGGER.warning("Ignoring malformed local task collection of type %s", type(raw_todos).__name__)
            return []
        return _parse_rows(raw_todos)

    def _write(self, todos: Sequence[TodoItem]) -> None:
        try:
            self._backend.write_document({TODOS_KEY: [todo.model_dump() for todo in todos]})
        except OSError as exc:
            raise RepositoryError(f"Local task file could not be written: {exc}") from exc
        self._todos = list(todos)

    def fetch_all(self) -> list[TodoItem]:
        return sorted(self._todos, key=lambda todo: todo.created_at)

    def insert(self, text: str) -> TodoItem:
        created = TodoItem(text=text, created_at=datetime.now(timezone.utc))
        self._write([*self._todos, created])
        return created

    def delete(self, todo_id: str) -> None:
        self._write([todo for todo in self._todos if todo.id != todo_id])

    def update(self, todo_id: str, *, text: Optional[str] = None, completed: Optional[bool] = None) -> None:
        payload = _update_payload(text, completed)
        if not payload:
            return
        self._write([todo.model_copy(update=payload) if todo.id == todo_id else todo for todo in self._todos])


__all__ = [
    "LocalTodoRepository",
    "RepositoryError",
    "SupabaseTodoRepository",
    "TodoRepository",
]
