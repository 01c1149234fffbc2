# src/taskdeck/tasks/suggestions.py

from __future__ import annotations

"""
AI subtask suggestions.

Per task: idle -> generating -> idle (with staged suggestions or after an alert).
Nothing is persisted until the user saves a staged suggestion.

Each generate() call takes a fresh per-task token. When the response arrives
and a newer call for the same task has started meanwhile, the response is
discarded: it neither stages suggestions nor clears the generating flag.
"""

import itertools
import logging
from typing import Any

from ..backend.errors import BackendError
from ..core.ports import DataService, Notifier
from .subtask_store import SubtaskStore

logger = logging.getLogger(__name__)

GENERATE_FAILED = "Failed to generate subtasks. Please try again."


def parse_suggestions(payload: Any) -> list[str]:
    """Extract `subtasks: [str, ...]` from the function response."""
    if not isinstance(payload, dict):
        raise ValueError("suggestion response is not an object")
    items = payload.get("subtasks")
    if not isinstance(items, list):
        raise ValueError("suggestion response has no 'subtasks' list")
    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        text = item.strip()
        if text:
            out.append(text)
    return out


class SuggestionWorkflow:
    def __init__(
            self,
            backend: DataService,
            notifier: Notifier,
            subtasks: SubtaskStore,
            *,
            function_name: str = "generate-subtasks",
    ) -> None:
        self._backend = backend
        self._notifier = notifier
        self._subtasks = subtasks
        self._function_name = function_name

        self._staged: dict[str, list[str]] = {}
        self._generating: set[str] = set()
        self._tokens: dict[str, int] = {}
        self._counter = itertools.count(1)

    # ---- read-only views ----

    def staged(self, task_id: str) -> list[str]:
        return list(self._staged.get(task_id, []))

    def is_generating(self, task_id: str) -> bool:
        return task_id in self._generating

    def _is_current(self, task_id: str, token: int) -> bool:
        return self._tokens.get(task_id) == token

    # ---- operations ----

    async def generate(self, task_id: str, task_title: str) -> bool:
        token = next(self._counter)
        self._tokens[task_id] = token

        self._generating.add(task_id)
        self._staged.pop(task_id, None)

        try:
            payload = await self._backend.invoke(self._function_name, {"taskTitle": task_title})
            suggestions = parse_suggestions(payload)
        except (BackendError, ValueError):
            if self._is_current(task_id, token):
                logger.exception("Error generating subtasks task_id=%s", task_id)
                self._notifier.alert(GENERATE_FAILED)
            else:
                logger.info("Ignoring failure of superseded suggestion request task_id=%s", task_id)
            return False
        finally:
            if self._is_current(task_id, token):
                self._generating.discard(task_id)

        if not self._is_current(task_id, token):
            logger.info("Discarding superseded suggestions task_id=%s token=%s", task_id, token)
            return False

        self._staged[task_id] = suggestions
        self._subtasks.expand(task_id)
        logger.info("Staged %d suggestions task_id=%s", len(suggestions), task_id)
        return True

    async def save(self, task_id: str, text: str) -> bool:
        """Persist one staged suggestion as a subtask and unstage it."""
        staged = self._staged.get(task_id) or []
        if text not in staged:
            logger.warning("save: %r is not staged for task_id=%s", text, task_id)
            return False

        if not await self._subtasks.add(task_id, text):
            return False

        # list.remove drops only the first occurrence, duplicates stay staged.
        current = self._staged.get(task_id)
        if current and text in current:
            current.remove(text)
        return True

    def dismiss(self, task_id: str, text: str) -> bool:
        current = self._staged.get(task_id)
        if not current or text not in current:
            return False
        current.remove(text)
        return True

    def forget(self, task_id: str) -> None:
        self._staged.pop(task_id, None)
        self._generating.discard(task_id)
        self._tokens.pop(task_id, None)

    def clear(self) -> None:
        self._staged.clear()
        self._generating.clear()
        self._tokens.clear()
