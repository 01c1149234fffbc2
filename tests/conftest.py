# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.core.state import AppState, build_state

from .fakes import FakeDataService, FakeNavigator, FakeNotifier

USER = {"id": "user-1", "email": "ada@example.com", "user_metadata": {"name": "Ada"}}


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with build_state().

    A SimpleNamespace rather than the real config keeps unit tests isolated
    from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        data_dir=tmp_path,
        session_path=tmp_path / "session.json",
        suggest_function="generate-subtasks",
        profile_bucket="profile-pictures",
    )


@pytest.fixture()
def backend() -> FakeDataService:
    return FakeDataService(user=dict(USER))


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def navigator() -> FakeNavigator:
    return FakeNavigator()


@pytest.fixture()
def state(settings, backend, notifier, navigator) -> AppState:
    """AppState wired with in-memory fakes for every port."""
    return build_state(settings, backend, notifier, navigator)
