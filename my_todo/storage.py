"""JSON file persistence for the local-only task backend."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping, Protocol

from pydantic_core import to_jsonable_python

DEFAULT_STATE_FILENAME = "my_todo_state.json"
DEFAULT_DATA_DIR = Path(".data") / "MyTodo"
TODOS_KEY = "todos"


class StorageBackend(Protocol):
    def read_document(self) -> Mapping[str, object]:
        """Return the stored document, or an empty mapping when nothing was saved yet."""

    def write_document(self, document: Mapping[str, object]) -> None:
        """Replace the stored document."""


def resolve_state_file_path(path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> Path:
    """Pick the task file: an explicit ``*.json`` path, a directory, ``TODO_DATA_DIR`` or ``.data/MyTodo``."""

    if path is not None:
        candidate = Path(path).expanduser()
        if candidate.suffix == ".json" and not candidate.is_dir():
            return candidate
        return candidate / DEFAULT_STATE_FILENAME

    data_dir = (env if env is not None else os.environ).get("TODO_DATA_DIR")
    base_dir = Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR
    return base_dir / DEFAULT_STATE_FILENAME


class FileStorageBackend:
    """Task document kept in one UTF-8 JSON file.

    Writes go through a sibling temp file and ``os.replace`` so a crash never
    leaves half a document behind. Saving the same content twice in a row is
    skipped.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = resolve_state_file_path(path)
        self._written: str | None = None

    def read_document(self) -> Mapping[str, object]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        document = json.loads(raw)
        return document if isinstance(document, dict) else {}

    def write_document(self, document: Mapping[str, object]) -> None:
        payload = json.dumps(document, default=to_jsonable_python, ensure_ascii=False, sort_keys=True)
        if payload == self._written:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        scratch = self.path.with_name(f".{self.path.name}.tmp")
        scratch.write_text(payload, encoding="utf-8")
        os.replace(scratch, self.path)
        self._written = payload


__all__ = [
    "DEFAULT_DATA_DIR",
    "DEFAULT_STATE_FILENAME",
    "FileStorageBackend",
    "StorageBackend",
    "TODOS_KEY",
    "resolve_state_file_path",
]
