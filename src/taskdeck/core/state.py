# src/taskdeck/core/state.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from ..auth.session import SessionGuard
from ..profile.picture import ProfilePictureWorkflow
from ..tasks.subtask_store import SubtaskStore
from ..tasks.suggestions import SuggestionWorkflow
from ..tasks.task_store import TaskStore
from .ports import DataService, Navigator, Notifier


@dataclass
class AppState:
    """Everything a front-end needs: settings, ports, and the client-side stores."""

    settings: Any
    backend: DataService
    notifier: Notifier
    navigator: Navigator

    guard: SessionGuard
    tasks: TaskStore
    subtasks: SubtaskStore
    suggestions: SuggestionWorkflow
    profile: ProfilePictureWorkflow

    # Fire-and-forget work started by the front-end (e.g. suggestion requests).
    background: set[asyncio.Task] = field(default_factory=set)

    def reset_client_state(self) -> None:
        """Drop everything cached for the signed-in user (after sign-out)."""
        self.tasks.clear()
        self.suggestions.clear()
        self.profile.clear()


def build_state(
        settings: Any,
        backend: DataService,
        notifier: Notifier,
        navigator: Navigator,
) -> AppState:
    subtasks = SubtaskStore(backend, notifier)
    return AppState(
        settings=settings,
        backend=backend,
        notifier=notifier,
        navigator=navigator,
        guard=SessionGuard(
            backend,
            navigator,
            notifier,
            session_path=getattr(settings, "session_path", None),
        ),
        tasks=TaskStore(backend, notifier, subtasks),
        subtasks=subtasks,
        suggestions=SuggestionWorkflow(
            backend,
            notifier,
            subtasks,
            function_name=getattr(settings, "suggest_function", "generate-subtasks"),
        ),
        profile=ProfilePictureWorkflow(
            backend,
            notifier,
            bucket=getattr(settings, "profile_bucket", "profile-pictures"),
        ),
    )
