# src/taskdeck/backend/errors.py

from __future__ import annotations

from typing import Any

import httpx


class BackendError(RuntimeError):
    """A remote call failed: transport error (status is None) or non-2xx response."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AuthError(BackendError):
    """The backend rejected our credentials (401/403)."""


def _message_from_payload(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in ("message", "msg", "error_description", "error"):
        val = payload.get(key)
        if isinstance(val, str) and val.strip():
            return val.strip()
    return None


def error_from_response(resp: httpx.Response) -> BackendError:
    try:
        payload = resp.json()
    except ValueError:
        payload = None

    detail = _message_from_payload(payload) or resp.reason_phrase or "request failed"
    msg = f"{resp.request.method} {resp.request.url.path} -> {resp.status_code}: {detail}"

    if resp.status_code in (401, 403):
        return AuthError(msg, status=resp.status_code)
    return BackendError(msg, status=resp.status_code)
