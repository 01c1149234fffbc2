# src/taskdeck/backend/client.py

"""
Async HTTP client for the hosted backend (Supabase conventions).

One httpx.AsyncClient per process. The anon key is sent as `apikey` on every
request; the user's access token (when signed in) replaces it as the bearer.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.ports import Filters, Row
from .errors import BackendError, error_from_response

logger = logging.getLogger(__name__)


def _make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(
        connect=connect_s,
        read=read_s,
        write=max(read_s, 10.0),
        pool=connect_s,
    )


def _eq(value: Any) -> str:
    if isinstance(value, bool):
        return "eq." + ("true" if value else "false")
    if value is None:
        return "is.null"
    return f"eq.{value}"


def _filter_params(filters: Filters | None) -> dict[str, str]:
    return {col: _eq(val) for col, val in (filters or {}).items()}


class SupabaseClient:
    """Implements core.ports.DataService over plain HTTP."""

    def __init__(self, settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        base_url = str(getattr(settings, "supabase_url", "") or "").rstrip("/")
        anon_key = getattr(settings, "supabase_anon_key", None)

        if not base_url:
            raise RuntimeError("Backend URL is not set. Set TASKDECK_SUPABASE_URL in your .env.")
        if not anon_key or not str(anon_key).strip():
            raise RuntimeError("Backend key is not set. Set TASKDECK_SUPABASE_ANON_KEY in your .env.")

        self._base_url = base_url
        self._anon_key = str(anon_key).strip()
        self._access_token: str | None = None

        timeout = _make_timeout(
            float(getattr(settings, "http_connect_timeout", 5.0)),
            float(getattr(settings, "http_read_timeout", 30.0)),
        )
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    # ---- session ----

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def set_access_token(self, token: str | None) -> None:
        self._access_token = token or None

    async def close(self) -> None:
        await self._http.aclose()

    # ---- low-level helpers ----

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self._access_token or self._anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
            self,
            method: str,
            path: str,
            *,
            params: dict[str, str] | None = None,
            json: Any = None,
            content: bytes | None = None,
            headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                content=content,
                headers=self._headers(headers),
            )
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {path} failed: {e.__class__.__name__}: {e}") from e

        if not resp.is_success:
            raise error_from_response(resp)

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(
                f"Malformed JSON from {resp.request.url.path}", status=resp.status_code
            ) from e

    def _rows(self, resp: httpx.Response) -> list[Row]:
        data = self._json(resp)
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise BackendError(f"Unexpected payload from {resp.request.url.path}", status=resp.status_code)
        return [r for r in data if isinstance(r, dict)]

    # ---- auth ----

    async def get_user(self) -> Row | None:
        if not self._access_token:
            return None
        resp = await self._request("GET", "/auth/v1/user")
        data = self._json(resp)
        if not isinstance(data, dict) or not data.get("id"):
            return None
        return data

    async def sign_in(self, email: str, password: str) -> Row:
        resp = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        data = self._json(resp) or {}
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise BackendError("Sign-in response did not include an access token.", status=resp.status_code)
        self._access_token = str(token)
        return data

    async def sign_up(self, email: str, password: str, *, name: str | None = None) -> Row:
        body: dict[str, Any] = {"email": email, "password": password}
        if name:
            body["data"] = {"name": name}
        resp = await self._request("POST", "/auth/v1/signup", json=body)
        data = self._json(resp) or {}
        # With email confirmation disabled the backend signs the user in right away.
        token = data.get("access_token") if isinstance(data, dict) else None
        if token:
            self._access_token = str(token)
        return data if isinstance(data, dict) else {}

    async def sign_out(self) -> None:
        if not self._access_token:
            return
        try:
            await self._request("POST", "/auth/v1/logout")
        finally:
            self._access_token = None

    # ---- tables ----

    async def select(
            self,
            table: str,
            *,
            filters: Filters | None = None,
            order: str | None = None,
            ascending: bool = True,
    ) -> list[Row]:
        params = {"select": "*", **_filter_params(filters)}
        if order:
            params["order"] = f"{order}.{'asc' if ascending else 'desc'}"
        resp = await self._request("GET", f"/rest/v1/{table}", params=params)
        return self._rows(resp)

    async def insert(self, table: str, row: Row) -> list[Row]:
        resp = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        return self._rows(resp)

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("update() requires at least one filter")
        resp = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=_filter_params(filters),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return self._rows(resp)

    async def delete(self, table: str, *, filters: Filters) -> None:
        if not filters:
            raise ValueError("delete() requires at least one filter")
        await self._request("DELETE", f"/rest/v1/{table}", params=_filter_params(filters))

    async def upsert(self, table: str, row: Row, *, on_conflict: str) -> list[Row]:
        resp = await self._request(
            "POST",
            f"/rest/v1/{table}",
            params={"on_conflict": on_conflict},
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return self._rows(resp)

    # ---- storage ----

    async def upload(
            self,
            bucket: str,
            path: str,
            data: bytes,
            *,
            content_type: str,
            cache_control: str = "3600",
            upsert: bool = False,
    ) -> None:
        await self._request(
            "POST",
            f"/storage/v1/object/{bucket}/{path}",
            content=data,
            headers={
                "Content-Type": content_type,
                "cache-control": f"max-age={cache_control}",
                "x-upsert": "true" if upsert else "false",
            },
        )

    async def remove(self, bucket: str, paths: list[str]) -> None:
        if not paths:
            return
        await self._request("DELETE", f"/storage/v1/object/{bucket}", json={"prefixes": list(paths)})

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{bucket}/{path}"

    # ---- functions ----

    async def invoke(self, name: str, payload: Row) -> Any:
        resp = await self._request("POST", f"/functions/v1/{name}", json=payload)
        return self._json(resp)
