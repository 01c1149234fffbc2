# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from ..backend.errors import BackendError
from ..core.ports import DataService, Notifier
from .subtask_store import TABLE as SUBTASKS_TABLE
from .subtask_store import SubtaskStore
from .task_models import Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

TABLE = "tasks"


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


class TaskStore:
    """
    The current user's task list, newest first.

    Consistency model:
    - every mutation is followed by a full reload (never a local patch)
    - a reload also refreshes the subtasks of every returned task
    - reload responses are sequenced: an answer to an older request never
      overwrites the result of a newer one
    """

    def __init__(self, backend: DataService, notifier: Notifier, subtasks: SubtaskStore) -> None:
        self._backend = backend
        self._notifier = notifier
        self.subtasks = subtasks
        self.user_id: str | None = None
        self.tasks: list[Task] = []

        self._load_seq = 0
        self._applied_seq = 0

    def get(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def clear(self) -> None:
        self.user_id = None
        self.tasks = []
        self.subtasks.clear()

    async def load(self, user_id: str) -> bool:
        self.user_id = user_id
        self.subtasks.user_id = user_id

        self._load_seq += 1
        seq = self._load_seq

        try:
            rows = await self._backend.select(
                TABLE, filters={"user_id": user_id}, order="created_at", ascending=False
            )
        except BackendError:
            logger.exception("Error loading tasks user=%s", user_id)
            return False

        if seq < self._applied_seq:
            logger.debug("Dropping stale task reload seq=%s (applied=%s)", seq, self._applied_seq)
            return True

        self._applied_seq = seq
        self.tasks = [Task.from_row(r) for r in rows]
        self.subtasks.retain({t.id for t in self.tasks})
        logger.debug("Loaded %d tasks user=%s", len(self.tasks), user_id)

        # One request per task; each load reports its own failures.
        await asyncio.gather(*(self.subtasks.load(t.id) for t in self.tasks))
        return True

    async def _reload(self) -> None:
        if self.user_id:
            await self.load(self.user_id)

    async def add(self, title: str, priority: TaskPriority | str = TaskPriority.MEDIUM) -> bool:
        title = (title or "").strip()
        if not title:
            return False
        if not self.user_id:
            logger.warning("add task without a user")
            return False

        try:
            await self._backend.insert(
                TABLE,
                {
                    "user_id": self.user_id,
                    "title": title,
                    "priority": str(TaskPriority(priority)),
                    "status": str(TaskStatus.PENDING),
                },
            )
        except BackendError:
            logger.exception("Error adding task title=%r", title)
            self._notifier.alert("Failed to add task. Please try again.")
            return False

        logger.info("Task added: %r (%s)", title, priority)
        await self._reload()
        return True

    async def set_status(self, task_id: str, status: TaskStatus | str) -> bool:
        try:
            await self._backend.update(
                TABLE,
                {"status": str(TaskStatus(status)), "updated_at": _utc_now_iso()},
                filters={"id": task_id},
            )
        except BackendError:
            logger.exception("Error updating task status id=%s", task_id)
            self._notifier.alert("Failed to update task. Please try again.")
            return False

        await self._reload()
        return True

    async def remove(self, task_id: str) -> bool:
        """
        Delete a task, then its subtasks, then reload.

        The task goes first: if that fails nothing is lost. A failed subtask
        cleanup only leaves orphaned rows behind.
        """
        try:
            await self._backend.delete(TABLE, filters={"id": task_id})
        except BackendError:
            logger.exception("Error deleting task id=%s", task_id)
            self._notifier.alert("Failed to delete task. Please try again.")
            return False

        try:
            await self._backend.delete(SUBTASKS_TABLE, filters={"task_id": task_id})
        except BackendError:
            logger.warning("Subtasks of deleted task id=%s were not removed", task_id, exc_info=True)

        self.subtasks.forget(task_id)
        logger.info("Task deleted id=%s", task_id)
        await self._reload()
        return True
