# tests/test_commands.py

from __future__ import annotations

import asyncio
import logging

import pytest

from taskdeck.cli.commands import CommandRegistry, registry


@pytest.mark.asyncio
async def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    async def h2(state, args):
        called["h2"] += 1
        return "h2"

    async def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert await reg.handle(state, "/a x") == "h2"
    assert await reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called["h2"] == 1
    assert called["h3"] == 1


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")


@pytest.mark.asyncio
async def test_tasks_requires_login(state, backend, navigator) -> None:
    backend.user = None

    reply = await registry.handle(state, "/tasks")

    assert "not logged in" in reply
    assert navigator.current == "login"


@pytest.mark.asyncio
async def test_dashboard_flow(state, backend) -> None:
    reply = await registry.handle(state, "/add high Write report")
    assert "1. [high] Write report (pending)" in reply

    await registry.handle(state, "/sub 1 Draft outline")
    reply = await registry.handle(state, "/toggle 1.1")
    assert "1.1 [x] Draft outline" in reply

    reply = await registry.handle(state, "/status 1 done")
    assert "Write report (done)" in reply

    reply = await registry.handle(state, "/rm 1")
    assert "No tasks yet" in reply
    assert backend.tables["subtasks"] == []


@pytest.mark.asyncio
async def test_save_staged_suggestion_by_number(state, backend) -> None:
    async def handler(name, payload):
        return {"subtasks": ["Book venue", "Send invites"]}

    backend.function_handler = handler
    await registry.handle(state, "/add Plan launch")
    task_id = state.tasks.tasks[0].id
    await state.suggestions.generate(task_id, "Plan launch")

    reply = await registry.handle(state, "/save 1 2")

    assert "1.1 [ ] Send invites" in reply
    assert "(1) Book venue" in reply
    assert state.suggestions.staged(task_id) == ["Book venue"]


@pytest.mark.asyncio
async def test_upload_rejects_non_image_file(state, backend, notifier, tmp_path) -> None:
    doc = tmp_path / "notes.txt"
    doc.write_text("hi", "utf-8")

    reply = await registry.handle(state, f"/upload {doc}")

    assert reply == "Profile picture unchanged."
    assert notifier.alerts == ["Please select an image file"]
    assert backend.calls_of("upload") == []


@pytest.mark.asyncio
async def test_suggest_job_crash_is_logged_and_collected(state, backend, caplog) -> None:
    async def handler(name, payload):
        raise RuntimeError("function exploded")

    backend.function_handler = handler
    await registry.handle(state, "/add Plan launch")

    with caplog.at_level(logging.ERROR, logger="taskdeck.cli.commands"):
        reply = await registry.handle(state, "/suggest 1")
        jobs = list(state.background)
        await asyncio.gather(*jobs, return_exceptions=True)
        await asyncio.sleep(0)

    assert reply == "Generating subtasks for 'Plan launch'..."
    assert len(jobs) == 1
    assert state.background == set()
    failures = [r for r in caplog.records if r.name == "taskdeck.cli.commands"]
    assert len(failures) == 1
    assert "Background job suggest:" in failures[0].getMessage()
    assert isinstance(failures[0].exc_info[1], RuntimeError)
    assert not state.suggestions.is_generating(state.tasks.tasks[0].id)
