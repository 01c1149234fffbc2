# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

PROMPT = ">>> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """Alerts become a highlighted line in the console."""

    def __init__(self) -> None:
        self.last: str | None = None

    def alert(self, message: str) -> None:
        self.last = message
        _print_ts(f"[!] {message}")


class ConsoleNavigator:
    """Tracks the current view; the console has no real screens to switch."""

    def __init__(self, initial: str = "home") -> None:
        self.current = initial

    def go_to(self, view: str) -> None:
        if view == self.current:
            return
        logger.debug("view %s -> %s", self.current, view)
        self.current = view
        if view == "login":
            _print_ts("Please log in: /login <email> <password> (or /signup).")


async def _shutdown_background(state: AppState) -> None:
    pending = [t for t in state.background if not t.done()]
    for t in pending:
        t.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


async def run_console_loop(state: AppState) -> None:
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "taskdeck"))
    logger.info("Console connector started.")
    _print_ts(f"[{app_name}] Organize your day. Use /help for commands, /exit to quit.")

    def emit(text: str) -> None:
        # Results of background work (e.g. suggestions) arrive between prompts.
        print(f"\n[{_ts_local()}] {text}", flush=True)

    # Dashboard mount when a saved session is still valid.
    if getattr(state.backend, "access_token", None):
        reply = await command_registry.handle(state, "/tasks", emit=emit)
        if reply:
            _print_ts(reply)

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, PROMPT)).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                reply = await command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is None:
                reply = "Commands start with '/'. Use /help to list them."
            _print_ts(reply)
    finally:
        await _shutdown_background(state)

    logger.info("Console connector finished.")
