from __future__ import annotations

import base64
import hashlib
import logging
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlencode

import streamlit as st

from my_todo.constants import SS_AUTH_SESSION
from my_todo.models import AuthSession
from my_todo.supabase_client import SupabaseClient, SupabaseError

LOGGER = logging.getLogger(__name__)

DEFAULT_PROVIDER = "github"
LOCAL_USER_ID = "local-user"
EXPIRY_LEEWAY = timedelta(seconds=60)
PENDING_LOGIN_TTL = timedelta(minutes=10)


class AuthError(RuntimeError):
    """Raised when signing in or refreshing a session fails."""


def generate_pkce_pair() -> tuple[str, str]:
    """Return a ``(code_verifier, code_challenge)`` pair for the S256 PKCE method."""

    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


def build_authorize_url(
    supabase_url: str,
    *,
    redirect_to: str,
    code_challenge: str,
    provider: str = DEFAULT_PROVIDER,
) -> str:
    params = {
        "provider": provider,
        "redirect_to": redirect_to,
        "code_challenge": code_challenge,
        "code_challenge_method": "s256",
    }
    return f"{supabase_url.rstrip('/')}/auth/v1/authorize?{urlencode(params)}"


def _session_from_payload(payload: Any) -> AuthSession:
    if not isinstance(payload, Mapping):
        raise AuthError("Unexpected token response format.")

    access_token = payload.get("access_token")
    user = payload.get("user")
    if not isinstance(access_token, str) or not access_token or not isinstance(user, Mapping):
        raise AuthError("Token response is missing the access token or user.")

    expires_at: Optional[datetime] = None
    raw_expires_at = payload.get("expires_at")
    raw_expires_in = payload.get("expires_in")
    if isinstance(raw_expires_at, (int, float)):
        expires_at = datetime.fromtimestamp(raw_expires_at, tz=timezone.utc)
    elif isinstance(raw_expires_in, (int, float)):
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(raw_expires_in))

    metadata = user.get("user_metadata")
    user_name: Optional[str] = None
    if isinstance(metadata, Mapping):
        for key in ("user_name", "preferred_username", "full_name", "name"):
            value = metadata.get(key)
            if isinstance(value, str) and value:
                user_name = value
                break

    refresh_token = payload.get("refresh_token")
    email = user.get("email")
    return AuthSession(
        access_token=access_token,
        refresh_token=refresh_token if isinstance(refresh_token, str) else None,
        expires_at=expires_at,
        user_id=str(user.get("id") or ""),
        email=email if isinstance(email, str) and email else None,
        user_name=user_name,
    )


def exchange_code_for_session(client: SupabaseClient, *, code: str, code_verifier: str) -> AuthSession:
    try:
        payload = client.auth(
            "POST",
            "token",
            params={"grant_type": "pkce"},
            json={"auth_code": code, "code_verifier": code_verifier},
        )
    except SupabaseError as exc:
        raise AuthError(f"Sign-in failed: {exc}") from exc
    return _session_from_payload(payload)


def refresh_session(client: SupabaseClient, session: AuthSession) -> AuthSession:
    if not session.refresh_token:
        raise AuthError("Session cannot be refreshed without a refresh token.")
    try:
        payload = client.auth(
            "POST",
            "token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": session.refresh_token},
        )
    except SupabaseError as exc:
        raise AuthError(f"Session refresh failed: {exc}") from exc
    return _session_from_payload(payload)


def sign_out(client: SupabaseClient, session: AuthSession) -> None:
    """Revoke the session remotely; a failure is logged and otherwise ignored."""

    try:
        client.with_access_token(session.access_token).auth("POST", "logout")
    except SupabaseError as exc:
        LOGGER.warning("Remote sign-out failed: %s", exc)


def is_expired(session: AuthSession, *, now: Optional[datetime] = None) -> bool:
    if session.expires_at is None:
        return False
    reference = now or datetime.now(timezone.utc)
    return session.expires_at - EXPIRY_LEEWAY <= reference


def local_session() -> AuthSession:
    return AuthSession(access_token="local", user_id=LOCAL_USER_ID, user_name="ローカルユーザー")


class PendingLogins:
    """PKCE verifiers waiting for the OAuth redirect, keyed by a one-time nonce.

    The redirect opens a fresh Streamlit session, so verifiers are kept in a
    process-wide object rather than in ``st.session_state``. Attempts older
    than ``ttl`` are dropped whenever a login starts or completes.
    """

    def __init__(
        self,
        *,
        ttl: timedelta = PENDING_LOGIN_TTL,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._verifiers: dict[str, tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._verifiers)

    def _prune(self, now: datetime) -> None:
        cutoff = now - self.ttl
        for nonce in [nonce for nonce, (_, issued_at) in self._verifiers.items() if issued_at <= cutoff]:
            del self._verifiers[nonce]

    def start(self) -> tuple[str, str]:
        """Register a new login attempt and return ``(nonce, code_challenge)``."""

        verifier, challenge = generate_pkce_pair()
        nonce = secrets.token_urlsafe(16)
        now = self._clock()
        with self._lock:
            self._prune(now)
            self._verifiers[nonce] = (verifier, now)
        return nonce, challenge

    def complete(self, nonce: str) -> Optional[str]:
        """Return the verifier for ``nonce`` once; expired or unknown nonces give ``None``."""

        with self._lock:
            self._prune(self._clock())
            entry = self._verifiers.pop(nonce, None)
        return entry[0] if entry is not None else None


def get_session() -> Optional[AuthSession]:
    raw = st.session_state.get(SS_AUTH_SESSION)
    if raw is None:
        return None
    if isinstance(raw, AuthSession):
        return raw
    return AuthSession.model_validate(raw)


def set_session(session: AuthSession) -> None:
    st.session_state[SS_AUTH_SESSION] = session.model_dump()


def clear_session() -> None:
    st.session_state.pop(SS_AUTH_SESSION, None)


__all__ = [
    "AuthError",
    "DEFAULT_PROVIDER",
    "LOCAL_USER_ID",
    "PendingLogins",
    "build_authorize_url",
    "clear_session",
    "exchange_code_for_session",
    "generate_pkce_pair",
    "get_session",
    "is_expired",
    "local_session",
    "refresh_session",
    "set_session",
    "sign_out",
]
