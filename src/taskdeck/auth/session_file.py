# src/taskdeck/auth/session_file.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def load_session(path: str | Path) -> dict[str, Any] | None:
    """Read a saved session ({access_token, user}) or None (best-effort)."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text("utf-8"))
    except Exception:
        logger.exception("Failed to read session from %s", path)
        return None
    if not isinstance(data, dict) or not data.get("access_token"):
        return None
    return data


def save_session(path: str | Path, *, access_token: str, user: dict[str, Any]) -> None:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"access_token": access_token, "user": user}, ensure_ascii=False), "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(OSError):
            # The access token is a credential; keep the file private on disk.
            os.chmod(path, 0o600)
        logger.debug("Saved session to %s", path)
    except Exception:
        logger.exception("Failed to save session to %s", path)


def clear_session(path: str | Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        Path(path).unlink()
