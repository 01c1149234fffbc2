# src/taskdeck/tasks/subtask_store.py

from __future__ import annotations

import logging

from ..backend.errors import BackendError
from ..core.ports import DataService, Notifier
from .task_models import Subtask

logger = logging.getLogger(__name__)

TABLE = "subtasks"


class SubtaskStore:
    """
    Client-side subtask lists keyed by task id, plus the set of expanded tasks.

    Every mutation reloads the affected task's list from the backend
    (read-after-write); only `expanded` is changed locally.
    """

    def __init__(self, backend: DataService, notifier: Notifier) -> None:
        self._backend = backend
        self._notifier = notifier
        self.user_id: str | None = None
        self.by_task: dict[str, list[Subtask]] = {}
        self.expanded: set[str] = set()

    def for_task(self, task_id: str) -> list[Subtask]:
        return list(self.by_task.get(task_id, []))

    # ---- local UI state ----

    def is_expanded(self, task_id: str) -> bool:
        return task_id in self.expanded

    def expand(self, task_id: str) -> None:
        self.expanded.add(task_id)

    def toggle_expanded(self, task_id: str) -> bool:
        if task_id in self.expanded:
            self.expanded.discard(task_id)
            return False
        self.expanded.add(task_id)
        return True

    def forget(self, task_id: str) -> None:
        self.by_task.pop(task_id, None)
        self.expanded.discard(task_id)

    def retain(self, task_ids: set[str]) -> None:
        """Drop lists and expanded flags of tasks that are no longer loaded."""
        for task_id in [k for k in self.by_task if k not in task_ids]:
            del self.by_task[task_id]
        self.expanded &= task_ids

    def clear(self) -> None:
        self.user_id = None
        self.by_task.clear()
        self.expanded.clear()

    # ---- remote-backed operations ----

    async def load(self, task_id: str) -> bool:
        try:
            rows = await self._backend.select(
                TABLE, filters={"task_id": task_id}, order="created_at", ascending=True
            )
        except BackendError:
            logger.exception("Error loading subtasks task_id=%s", task_id)
            return False

        self.by_task[task_id] = [Subtask.from_row(r) for r in rows]
        return True

    async def add(self, task_id: str, title: str) -> bool:
        title = (title or "").strip()
        if not title:
            return False
        if not self.user_id:
            logger.warning("add subtask without a user (task_id=%s)", task_id)
            return False

        try:
            await self._backend.insert(
                TABLE,
                {
                    "task_id": task_id,
                    "user_id": self.user_id,
                    "title": title,
                    "completed": False,
                },
            )
        except BackendError:
            logger.exception("Error adding subtask task_id=%s", task_id)
            self._notifier.alert("Failed to add subtask. Please try again.")
            return False

        await self.load(task_id)
        return True

    async def toggle_completed(self, subtask_id: str, task_id: str, current_completed: bool) -> bool:
        try:
            await self._backend.update(
                TABLE, {"completed": not current_completed}, filters={"id": subtask_id}
            )
        except BackendError:
            logger.exception("Error updating subtask id=%s", subtask_id)
            self._notifier.alert("Failed to update subtask. Please try again.")
            return False

        await self.load(task_id)
        return True

    async def remove(self, subtask_id: str, task_id: str) -> bool:
        try:
            await self._backend.delete(TABLE, filters={"id": subtask_id})
        except BackendError:
            logger.exception("Error deleting subtask id=%s", subtask_id)
            self._notifier.alert("Failed to delete subtask. Please try again.")
            return False

        await self.load(task_id)
        return True
