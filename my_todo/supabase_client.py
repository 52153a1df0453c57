from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

DEFAULT_TIMEOUT_SECONDS = 10.0


class SupabaseError(RuntimeError):
    """Raised when a Supabase REST or auth call fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SupabaseClient:
    """Minimal HTTP client for the PostgREST and GoTrue endpoints of a Supabase project."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        access_token: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self._client = client or httpx.Client(timeout=timeout)

    def with_access_token(self, access_token: Optional[str]) -> "SupabaseClient":
        return SupabaseClient(self.url, self.anon_key, access_token=access_token, client=self._client)

    def _headers(self, extra: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        json: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        try:
            response = self._client.request(
                method,
                f"{self.url}{path}",
                params=params,
                json=json,
                headers=self._headers(headers),
            )
        except httpx.HTTPError as exc:
            raise SupabaseError(f"Supabase request failed: {exc}") from exc

        if response.status_code >= 400:
            raise SupabaseError(_extract_error_message(response), status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise SupabaseError("Supabase returned a response that is not JSON.") from exc

    def rest(self, method: str, table: str, **kwargs: Any) -> Any:
        return self.request(method, f"/rest/v1/{table}", **kwargs)

    def auth(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        return self.request(method, f"/auth/v1/{endpoint}", **kwargs)


def _extract_error_message(response: httpx.Response) -> str:
    fallback = f"Supabase request failed (status {response.status_code})."
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return f"{fallback[:-1]}: {value}"
    return fallback


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "SupabaseClient", "SupabaseError"]
