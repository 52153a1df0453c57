from __future__ import annotations

import base64
import hashlib
import json
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from my_todo.auth import (
    AuthError,
    PendingLogins,
    build_authorize_url,
    clear_session,
    exchange_code_for_session,
    generate_pkce_pair,
    get_session,
    is_expired,
    refresh_session,
    set_session,
    sign_out,
)
from my_todo.models import AuthSession
from my_todo.supabase_client import SupabaseClient

TOKEN_PAYLOAD = {
    "access_token": "jwt-1",
    "refresh_token": "refresh-1",
    "expires_at": 1_900_000_000,
    "user": {
        "id": "user-1",
        "email": "octo@example.com",
        "user_metadata": {"user_name": "octocat"},
    },
}


def _client(handler) -> SupabaseClient:
    return SupabaseClient(
        "https://demo.supabase.co",
        "anon",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_pkce_challenge_matches_verifier() -> None:
    verifier, challenge = generate_pkce_pair()

    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).rstrip(b"=").decode()
    assert challenge == expected
    assert 43 <= len(verifier) <= 128


def test_authorize_url_targets_github_with_pkce() -> None:
    url = build_authorize_url(
        "https://demo.supabase.co/",
        redirect_to="http://localhost:8501/?login_state=n1",
        code_challenge="challenge",
    )

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.path == "/auth/v1/authorize"
    assert query["provider"] == ["github"]
    assert query["redirect_to"] == ["http://localhost:8501/?login_state=n1"]
    assert query["code_challenge_method"] == ["s256"]


def test_exchange_code_for_session() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=TOKEN_PAYLOAD)

    session = exchange_code_for_session(_client(handler), code="abc", code_verifier="verifier")

    request = seen["request"]
    assert request.url.path == "/auth/v1/token"
    assert request.url.params["grant_type"] == "pkce"
    assert json.loads(request.content) == {"auth_code": "abc", "code_verifier": "verifier"}
    assert session.access_token == "jwt-1"
    assert session.user_id == "user-1"
    assert session.display_name == "octocat"
    assert session.expires_at == datetime.fromtimestamp(1_900_000_000, tz=timezone.utc)


def test_exchange_failure_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error_description": "invalid flow state"})

    with pytest.raises(AuthError, match="invalid flow state"):
        exchange_code_for_session(_client(handler), code="abc", code_verifier="verifier")


def test_refresh_session_uses_refresh_token() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={**TOKEN_PAYLOAD, "access_token": "jwt-2"})

    old = AuthSession(access_token="jwt-1", refresh_token="refresh-1", user_id="user-1")
    refreshed = refresh_session(_client(handler), old)

    assert seen["request"].url.params["grant_type"] == "refresh_token"
    assert refreshed.access_token == "jwt-2"


def test_refresh_without_token_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(AuthError):
        refresh_session(_client(handler), AuthSession(access_token="jwt", user_id="u"))


def test_sign_out_failure_is_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer jwt-1"
        return httpx.Response(500)

    sign_out(_client(handler), AuthSession(access_token="jwt-1", user_id="u"))


def test_is_expired_with_leeway() -> None:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    assert is_expired(AuthSession(access_token="t", user_id="u"), now=now) is False
    fresh = AuthSession(access_token="t", user_id="u", expires_at=now + timedelta(minutes=10))
    nearly = AuthSession(access_token="t", user_id="u", expires_at=now + timedelta(seconds=30))
    assert is_expired(fresh, now=now) is False
    assert is_expired(nearly, now=now) is True


def test_pending_logins_are_single_use() -> None:
    pending = PendingLogins()

    nonce, challenge = pending.start()
    verifier = pending.complete(nonce)

    assert verifier is not None
    assert challenge == base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).rstrip(b"=").decode()
    assert pending.complete(nonce) is None


def test_session_round_trip_through_session_state(session_state: dict[str, object]) -> None:
    session = AuthSession(access_token="t", user_id="u", email="a@example.com")

    set_session(session)
    assert get_session() == session

    clear_session()
    assert get_session() is None


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def test_pending_login_expires_after_ttl() -> None:
    clock = _Clock()
    pending = PendingLogins(ttl=timedelta(minutes=10), clock=clock)

    nonce, _ = pending.start()
    clock.now += timedelta(minutes=11)

    assert pending.complete(nonce) is None
    assert len(pending) == 0


def test_abandoned_logins_are_pruned_on_start() -> None:
    clock = _Clock()
    pending = PendingLogins(ttl=timedelta(minutes=10), clock=clock)

    for _ in range(500):
        pending.start()
    clock.now += timedelta(minutes=10, seconds=1)
    fresh_nonce, _ = pending.start()

    assert len(pending) == 1
    assert pending.complete(fresh_nonce) is not None
