from __future__ import annotations

import json

import httpx
import pytest

from my_todo.repository import LocalTodoRepository, RepositoryError, SupabaseTodoRepository
from my_todo.storage import FileStorageBackend
from my_todo.supabase_client import SupabaseClient

ROW = {"id": 7, "text": "Buy milk", "completed": False, "created_at": "2024-05-01T09:00:00+00:00"}


def _repository(handler) -> SupabaseTodoRepository:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    client = SupabaseClient("https://demo.supabase.co/", "anon", access_token="user-jwt", client=http_client)
    return SupabaseTodoRepository(client)


def test_fetch_all_requests_ordered_rows() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=[ROW])

    todos = _repository(handler).fetch_all()

    request = seen["request"]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/todos"
    assert request.url.params["order"] == "created_at.asc"
    assert request.headers["apikey"] == "anon"
    assert request.headers["Authorization"] == "Bearer user-jwt"
    assert [(todo.id, todo.text) for todo in todos] == [("7", "Buy milk")]


def test_insert_returns_stored_row() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(201, json=[ROW])

    created = _repository(handler).insert("Buy milk")

    request = seen["request"]
    assert request.method == "POST"
    assert request.headers["Prefer"] == "return=representation"
    assert json.loads(request.content) == [{"text": "Buy milk", "completed": False}]
    assert created.id == "7"


def test_update_and_delete_filter_by_id() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(204)

    repository = _repository(handler)
    repository.update("7", completed=True)
    repository.update("7")
    repository.delete("7")

    assert [request.method for request in requests] == ["PATCH", "DELETE"]
    assert requests[0].url.params["id"] == "eq.7"
    assert json.loads(requests[0].content) == {"completed": True}
    assert requests[1].url.params["id"] == "eq.7"


def test_http_error_becomes_repository_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "JWT expired"})

    with pytest.raises(RepositoryError, match="JWT expired"):
        _repository(handler).fetch_all()


def test_transport_error_becomes_repository_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(RepositoryError):
        _repository(handler).insert("x")


def test_local_repository_persists_between_instances(tmp_path) -> None:
    path = tmp_path / "todos.json"
    repository = LocalTodoRepository(FileStorageBackend(path))

    first = repository.insert("first")
    second = repository.insert("second")
    repository.update(first.id, completed=True)
    repository.delete(second.id)

    reloaded = LocalTodoRepository(FileStorageBackend(path)).fetch_all()

    assert [(todo.id, todo.text, todo.completed) for todo in reloaded] == [(first.id, "first", True)]


def test_local_repository_rejects_corrupt_file(tmp_path) -> None:
    path = tmp_path / "todos.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(RepositoryError):
        LocalTodoRepository(FileStorageBackend(path))
