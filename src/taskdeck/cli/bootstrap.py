# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the HTTP backend and the console ports into AppState,
- resumes a saved session when there is one.
"""

from __future__ import annotations

import logging

from ..backend.client import SupabaseClient
from ..config import get_settings
from ..connectors.console_connector import ConsoleNavigator, ConsoleNotifier
from ..core.state import AppState, build_state

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.session_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    Raises RuntimeError when the backend URL/key are not configured.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    backend = SupabaseClient(settings)
    state = build_state(settings, backend, ConsoleNotifier(), ConsoleNavigator())

    if state.guard.restore():
        logger.info("Restored saved session from %s", settings.session_path)
    return state
