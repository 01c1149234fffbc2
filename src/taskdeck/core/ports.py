# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the stores and workflows.

The core depends on Protocols instead of concrete implementations.
This keeps the backend and the front-end swappable and makes testing easier.
"""

from typing import Any, Protocol

Row = dict[str, Any]
Filters = dict[str, Any]


class DataService(Protocol):
    """
    Remote data service: auth, relational tables, object storage, functions.

    Every method raises backend.errors.BackendError on transport failure or
    on a non-2xx response.
    """

    # Auth
    def set_access_token(self, token: str | None) -> None: ...
    async def get_user(self) -> Row | None: ...
    async def sign_in(self, email: str, password: str) -> Row: ...
    async def sign_up(self, email: str, password: str, *, name: str | None = None) -> Row: ...
    async def sign_out(self) -> None: ...

    # Tables
    async def select(
            self,
            table: str,
            *,
            filters: Filters | None = None,
            order: str | None = None,
            ascending: bool = True,
    ) -> list[Row]: ...

    async def insert(self, table: str, row: Row) -> list[Row]: ...
    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]: ...
    async def delete(self, table: str, *, filters: Filters) -> None: ...
    async def upsert(self, table: str, row: Row, *, on_conflict: str) -> list[Row]: ...

    # Storage
    async def upload(
            self,
            bucket: str,
            path: str,
            data: bytes,
            *,
            content_type: str,
            cache_control: str = "3600",
            upsert: bool = False,
    ) -> None: ...

    async def remove(self, bucket: str, paths: list[str]) -> None: ...
    def public_url(self, bucket: str, path: str) -> str: ...

    # Edge functions
    async def invoke(self, name: str, payload: Row) -> Any: ...


class Notifier(Protocol):
    """User-facing alert surface (blocking alert in a UI, a printed line in the console)."""

    def alert(self, message: str) -> None: ...


class Navigator(Protocol):
    """Moves the front-end between views (home, login, dashboard, profile)."""

    def go_to(self, view: str) -> None: ...
