# src/taskdeck/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


@dataclass(slots=True)
class Task:
    id: str
    user_id: str
    title: str
    priority: TaskPriority
    status: TaskStatus
    created_at: str
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Task:
        return cls(
            id=str(row["id"]),
            user_id=str(row.get("user_id") or ""),
            title=str(row.get("title") or ""),
            priority=TaskPriority.from_db(row.get("priority")),
            status=TaskStatus.from_db(row.get("status")),
            created_at=str(row.get("created_at") or ""),
            updated_at=row.get("updated_at"),
        )


@dataclass(slots=True)
class Subtask:
    id: str
    task_id: str
    user_id: str
    title: str
    completed: bool
    created_at: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Subtask:
        return cls(
            id=str(row["id"]),
            task_id=str(row.get("task_id") or ""),
            user_id=str(row.get("user_id") or ""),
            title=str(row.get("title") or ""),
            completed=bool(row.get("completed")),
            created_at=str(row.get("created_at") or ""),
        )


@dataclass(slots=True)
class UserProfile:
    id: str
    user_id: str
    profile_picture_url: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> UserProfile:
        return cls(
            id=str(row.get("id") or ""),
            user_id=str(row.get("user_id") or ""),
            profile_picture_url=row.get("profile_picture_url") or None,
            updated_at=row.get("updated_at"),
        )


@dataclass(slots=True, frozen=True)
class Identity:
    """Authenticated user as reported by the auth service."""

    id: str
    email: str
    name: str

    @classmethod
    def from_user(cls, user: dict[str, Any]) -> Identity:
        meta = user.get("user_metadata") or {}
        name = meta.get("name") if isinstance(meta, dict) else None
        return cls(
            id=str(user["id"]),
            email=str(user.get("email") or ""),
            name=str(name or ""),
        )
