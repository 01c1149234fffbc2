# src/taskdeck/auth/session.py

from __future__ import annotations

import logging
from pathlib import Path

from ..backend.errors import BackendError
from ..core.ports import DataService, Navigator, Notifier
from ..tasks.task_models import Identity
from .session_file import clear_session, load_session, save_session

logger = logging.getLogger(__name__)

LOGIN_VIEW = "login"
HOME_VIEW = "home"
DASHBOARD_VIEW = "dashboard"


class SessionGuard:
    """
    Authentication gate for views that need a signed-in user.

    ensure() asks the backend who we are. No session, or any failure while
    asking, sends the user to the login view. There is no retry.
    """

    def __init__(
            self,
            backend: DataService,
            navigator: Navigator,
            notifier: Notifier,
            *,
            session_path: str | Path | None = None,
    ) -> None:
        self._backend = backend
        self._navigator = navigator
        self._notifier = notifier
        self._session_path = Path(session_path) if session_path else None
        self.identity: Identity | None = None

    def restore(self) -> bool:
        """Reuse the access token saved by a previous run (validated on next ensure())."""
        if self._session_path is None:
            return False
        data = load_session(self._session_path)
        if not data:
            return False
        self._backend.set_access_token(str(data["access_token"]))
        return True

    async def ensure(self) -> Identity | None:
        try:
            user = await self._backend.get_user()
        except BackendError:
            logger.info("Session check failed; treating as signed out", exc_info=True)
            user = None

        if not user:
            self.identity = None
            self._navigator.go_to(LOGIN_VIEW)
            return None

        self.identity = Identity.from_user(user)
        return self.identity

    def _remember(self, data: dict) -> Identity | None:
        user = data.get("user")
        if not isinstance(user, dict) or not user.get("id"):
            return None
        self.identity = Identity.from_user(user)
        token = data.get("access_token")
        if self._session_path is not None and token:
            save_session(self._session_path, access_token=str(token), user=user)
        return self.identity

    async def sign_in(self, email: str, password: str) -> Identity | None:
        email = (email or "").strip()
        if not email or not password:
            self._notifier.alert("Email and password are required.")
            return None

        try:
            data = await self._backend.sign_in(email, password)
        except BackendError as e:
            logger.warning("Sign-in failed for %s: %s", email, e)
            self._notifier.alert("Login failed. Check your email and password.")
            return None

        identity = self._remember(data)
        if identity is None:
            self._notifier.alert("Login failed. Please try again.")
            return None

        logger.info("Signed in user=%s", identity.id)
        self._navigator.go_to(DASHBOARD_VIEW)
        return identity

    async def sign_up(self, email: str, password: str, name: str | None = None) -> Identity | None:
        email = (email or "").strip()
        if not email or not password:
            self._notifier.alert("Email and password are required.")
            return None

        try:
            data = await self._backend.sign_up(email, password, name=name)
        except BackendError as e:
            logger.warning("Sign-up failed for %s: %s", email, e)
            self._notifier.alert("Signup failed. Please try again.")
            return None

        if not data.get("access_token"):
            # Email confirmation pending: no session yet.
            self._notifier.alert("Account created. Confirm your email, then log in.")
            self._navigator.go_to(LOGIN_VIEW)
            return None

        identity = self._remember(data)
        if identity is not None:
            logger.info("Signed up user=%s", identity.id)
            self._navigator.go_to(DASHBOARD_VIEW)
        return identity

    async def sign_out(self) -> None:
        try:
            await self._backend.sign_out()
        except BackendError:
            logger.warning("Sign-out request failed; clearing local session anyway", exc_info=True)
        finally:
            self.identity = None
            self._backend.set_access_token(None)
            if self._session_path is not None:
                clear_session(self._session_path)
        self._navigator.go_to(HOME_VIEW)
