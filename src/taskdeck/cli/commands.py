# src/taskdeck/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
import mimetypes
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import cast

from ..core.state import AppState
from ..tasks.task_models import Identity, Subtask, Task, TaskPriority, TaskStatus

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = "You are not logged in. Use /login <email> <password> or /signup."


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return await h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return await h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----

async def _require_identity(state: AppState) -> Identity | None:
    return await state.guard.ensure()


def _task_at(state: AppState, ref: str) -> Task | None:
    try:
        idx = int(ref)
    except ValueError:
        return None
    if idx < 1 or idx > len(state.tasks.tasks):
        return None
    return state.tasks.tasks[idx - 1]


def _subtask_at(state: AppState, ref: str) -> tuple[Task, Subtask] | None:
    """Resolve "<task#>.<subtask#>" against the last loaded lists."""
    task_ref, sep, sub_ref = ref.partition(".")
    if not sep:
        return None
    task = _task_at(state, task_ref)
    if task is None:
        return None
    subs = state.subtasks.for_task(task.id)
    try:
        idx = int(sub_ref)
    except ValueError:
        return None
    if idx < 1 or idx > len(subs):
        return None
    return task, subs[idx - 1]


def render_tasks(state: AppState) -> str:
    tasks = state.tasks.tasks
    if not tasks:
        return "No tasks yet. Add one with /add [low|medium|high] <title>."

    lines = [f"Tasks ({len(tasks)}):"]
    for i, t in enumerate(tasks, start=1):
        subs = state.subtasks.for_task(t.id)
        done = sum(1 for s in subs if s.completed)
        counter = f" [{done}/{len(subs)}]" if subs else ""
        lines.append(f"  {i}. [{t.priority}] {t.title} ({t.status}){counter}")

        if state.suggestions.is_generating(t.id):
            lines.append("     ... generating suggestions")

        if not state.subtasks.is_expanded(t.id):
            continue

        for j, s in enumerate(subs, start=1):
            mark = "x" if s.completed else " "
            lines.append(f"     {i}.{j} [{mark}] {s.title}")

        staged = state.suggestions.staged(t.id)
        if staged:
            lines.append("     suggestions:")
            for k, text in enumerate(staged, start=1):
                lines.append(f"       ({k}) {text}")
    return "\n".join(lines)


# ---- commands ----

async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_whoami(state: AppState, args: list[str]) -> str:
    identity = await _require_identity(state)
    if identity is None:
        return NOT_SIGNED_IN
    name = f"{identity.name} " if identity.name else ""
    return f"Logged in as {name}({identity.email})"


async def cmd_login(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /login <email> <password>"
    identity = await state.guard.sign_in(args[0], args[1])
    if identity is None:
        return "Not logged in."
    await state.tasks.load(identity.id)
    return f"Welcome back, {identity.name or identity.email}.\n" + render_tasks(state)


async def cmd_signup(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /signup <email> <password> [name]"
    name = " ".join(args[2:]).strip() or None
    identity = await state.guard.sign_up(args[0], args[1], name)
    if identity is None:
        return "No session yet."
    await state.tasks.load(identity.id)
    return f"Welcome, {identity.name or identity.email}."


async def cmd_logout(state: AppState, args: list[str]) -> str:
    await state.guard.sign_out()
    state.reset_client_state()
    return "Logged out."


async def cmd_tasks(state: AppState, args: list[str]) -> str:
    identity = await _require_identity(state)
    if identity is None:
        return NOT_SIGNED_IN
    state.navigator.go_to("dashboard")
    await state.tasks.load(identity.id)
    return render_tasks(state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title>                 -> medium priority
    /add high <title>            -> explicit priority
    """
    if state.tasks.user_id is None:
        identity = await _require_identity(state)
        if identity is None:
            return NOT_SIGNED_IN
        await state.tasks.load(identity.id)

    priority = TaskPriority.MEDIUM
    if args and args[0].lower() in {p.value for p in TaskPriority}:
        priority = TaskPriority(args[0].lower())
        args = args[1:]

    title = " ".join(args)
    if not title.strip():
        return "Usage: /add [low|medium|high] <title>"

    if not await state.tasks.add(title, priority):
        return "Task not added."
    return render_tasks(state)


async def cmd_status(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /status <n> <pending|in-progress|done>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]}. Use /tasks to list them."
    try:
        status = TaskStatus(args[1].lower())
    except ValueError:
        return "Status must be one of: pending, in-progress, done."
    await state.tasks.set_status(task.id, status)
    return render_tasks(state)


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <n>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]}. Use /tasks to list them."
    if await state.tasks.remove(task.id):
        state.suggestions.forget(task.id)
    return render_tasks(state)


async def cmd_expand(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /expand <n>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]}. Use /tasks to list them."
    state.subtasks.toggle_expanded(task.id)
    return render_tasks(state)


async def cmd_sub(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /sub <n> <title>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]}. Use /tasks to list them."
    if await state.subtasks.add(task.id, " ".join(args[1:])):
        state.subtasks.expand(task.id)
    return render_tasks(state)


async def cmd_toggle(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /toggle <n>.<m>"
    found = _subtask_at(state, args[0])
    if found is None:
        return f"No subtask {args[0]}. Expand a task with /expand <n> to see its subtasks."
    task, sub = found
    await state.subtasks.toggle_completed(sub.id, task.id, sub.completed)
    return render_tasks(state)


async def cmd_subrm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /subrm <n>.<m>"
    found = _subtask_at(state, args[0])
    if found is None:
        return f"No subtask {args[0]}."
    task, sub = found
    await state.subtasks.remove(sub.id, task.id)
    return render_tasks(state)


def _log_job_failure(job: asyncio.Task[None]) -> None:
    if job.cancelled():
        return
    exc = job.exception()
    if exc is not None:
        logger.exception("Background job %s failed", job.get_name(), exc_info=exc)


async def cmd_suggest(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /suggest <n> -> ask the AI for subtasks in the background.

    The console stays usable while the request is in flight; the result is
    emitted when it arrives.
    """
    if not args:
        return "Usage: /suggest <n>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]}. Use /tasks to list them."

    async def _run() -> None:
        ok = await state.suggestions.generate(task.id, task.title)
        if ok and emit is not None:
            emit(render_tasks(state))

    job = asyncio.create_task(_run(), name=f"suggest:{task.id}")
    state.background.add(job)
    job.add_done_callback(state.background.discard)
    job.add_done_callback(_log_job_failure)
    return f"Generating subtasks for '{task.title}'..."


async def cmd_save(state: AppState, args: list[str]) -> str:
    """
    /save <n> <k>    -> save suggestion k of task n
    /save <n> all    -> save every staged suggestion of task n
    """
    if len(args) < 2:
        return "Usage: /save <n> <k|all>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]}. Use /tasks to list them."

    staged = state.suggestions.staged(task.id)
    if not staged:
        return "No staged suggestions for this task. Use /suggest <n> first."

    if args[1].lower() == "all":
        picked = staged
    else:
        try:
            k = int(args[1])
        except ValueError:
            return "Usage: /save <n> <k|all>"
        if k < 1 or k > len(staged):
            return f"No suggestion ({args[1]})."
        picked = [staged[k - 1]]

    for text in picked:
        await state.suggestions.save(task.id, text)
    return render_tasks(state)


async def cmd_dismiss(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /dismiss <n> <k>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]}."
    staged = state.suggestions.staged(task.id)
    try:
        text = staged[int(args[1]) - 1]
    except (ValueError, IndexError):
        return f"No suggestion ({args[1]})."
    state.suggestions.dismiss(task.id, text)
    return render_tasks(state)


async def cmd_profile(state: AppState, args: list[str]) -> str:
    identity = await _require_identity(state)
    if identity is None:
        return NOT_SIGNED_IN
    state.navigator.go_to("profile")
    await state.profile.load(identity.id)

    url = state.profile.picture_url
    picture = f"Current image: {url.split('/')[-1]}" if url else "No profile picture."
    name = identity.name or "(no name)"
    return f"Profile: {name} ({identity.email})\n{picture}"


async def cmd_upload(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /upload <path-to-image>"
    identity = await _require_identity(state)
    if identity is None:
        return NOT_SIGNED_IN

    path = Path(" ".join(args)).expanduser()
    if not path.is_file():
        return f"File not found: {path}"

    content_type, _ = mimetypes.guess_type(path.name)
    data = path.read_bytes() if (content_type or "").startswith("image/") else b""

    if state.profile.profile is None:
        await state.profile.load(identity.id)

    if not await state.profile.upload(identity.id, path.name, data, content_type):
        return "Profile picture unchanged."
    return f"Profile picture: {state.profile.picture_url}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("whoami", cmd_whoami, help_text="Show the logged-in user.")
registry.register("login", cmd_login, help_text="Log in: /login <email> <password>.")
registry.register("signup", cmd_signup, help_text="Create an account: /signup <email> <password> [name].")
registry.register("logout", cmd_logout, help_text="Log out and forget the saved session.")
registry.register("tasks", cmd_tasks, help_text="Open the dashboard (reload tasks).", aliases=["ls", "dashboard"])
registry.register("add", cmd_add, help_text="Add a task: /add [low|medium|high] <title>.")
registry.register("status", cmd_status, help_text="Set status: /status <n> <pending|in-progress|done>.")
registry.register("rm", cmd_rm, help_text="Delete a task and its subtasks: /rm <n>.")
registry.register("expand", cmd_expand, help_text="Show/hide subtasks of a task: /expand <n>.")
registry.register("sub", cmd_sub, help_text="Add a subtask: /sub <n> <title>.")
registry.register("toggle", cmd_toggle, help_text="Toggle a subtask: /toggle <n>.<m>.")
registry.register("subrm", cmd_subrm, help_text="Delete a subtask: /subrm <n>.<m>.")
registry.register("suggest", cmd_suggest, help_text="AI subtask suggestions: /suggest <n>.")
registry.register("save", cmd_save, help_text="Save suggestions: /save <n> <k|all>.")
registry.register("dismiss", cmd_dismiss, help_text="Drop a suggestion: /dismiss <n> <k>.")
registry.register("profile", cmd_profile, help_text="Show profile and picture.")
registry.register("upload", cmd_upload, help_text="Upload a profile picture: /upload <path>.")
