# src/taskdeck/profile/picture.py

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import UTC, datetime

from ..backend.errors import BackendError
from ..core.ports import DataService, Notifier
from ..tasks.task_models import UserProfile

logger = logging.getLogger(__name__)

TABLE = "user_profiles"

NOT_AN_IMAGE = "Please select an image file"
UPLOAD_FAILED = "Failed to upload profile picture. Please try again."
UPLOAD_OK = "Profile picture uploaded successfully!"


def storage_path_from_url(url: str) -> str:
    """Public URLs end in `<user_id>/<file>`; that tail is the object path."""
    return "/".join(url.rstrip("/").split("/")[-2:])


def build_object_path(user_id: str, filename: str, *, now_ms: int | None = None) -> str:
    ext = filename.split(".")[-1] if filename else "img"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{user_id}/{now_ms}.{ext}"


class ProfilePictureWorkflow:
    """
    Profile picture upload.

    Order of remote steps: remove old object -> upload new object -> upsert
    the profile row (keyed on user_id). The old-object removal is best-effort:
    its failure is logged and the upload still proceeds, so the old object can
    be orphaned but the new URL always wins.
    """

    def __init__(self, backend: DataService, notifier: Notifier, *, bucket: str = "profile-pictures") -> None:
        self._backend = backend
        self._notifier = notifier
        self._bucket = bucket
        self.profile: UserProfile | None = None
        self.uploading = False

    @property
    def picture_url(self) -> str | None:
        return self.profile.profile_picture_url if self.profile else None

    def clear(self) -> None:
        self.profile = None
        self.uploading = False

    async def load(self, user_id: str) -> bool:
        try:
            rows = await self._backend.select(TABLE, filters={"user_id": user_id})
        except BackendError:
            logger.exception("Error loading profile user=%s", user_id)
            return False

        self.profile = UserProfile.from_row(rows[0]) if rows else None
        return True

    async def _remove_previous(self) -> None:
        old_url = self.picture_url
        if not old_url:
            return
        old_path = storage_path_from_url(old_url)
        try:
            await self._backend.remove(self._bucket, [old_path])
        except BackendError:
            logger.warning("Could not remove previous picture %s; continuing", old_path, exc_info=True)

    async def upload(self, user_id: str, filename: str, data: bytes, content_type: str | None) -> bool:
        if not (content_type or "").startswith("image/"):
            self._notifier.alert(NOT_AN_IMAGE)
            return False

        self.uploading = True
        try:
            await self._remove_previous()

            path = build_object_path(user_id, filename)
            await self._backend.upload(
                self._bucket,
                path,
                data,
                content_type=str(content_type),
                cache_control="3600",
                upsert=False,
            )
            public_url = self._backend.public_url(self._bucket, path)

            await self._backend.upsert(
                TABLE,
                {
                    "user_id": user_id,
                    "profile_picture_url": public_url,
                    "updated_at": datetime.now(UTC).isoformat(),
                },
                on_conflict="user_id",
            )
        except BackendError:
            logger.exception("Error uploading profile picture user=%s", user_id)
            self._notifier.alert(UPLOAD_FAILED)
            return False
        finally:
            self.uploading = False

        if self.profile is None:
            self.profile = UserProfile(id="", user_id=user_id, profile_picture_url=public_url)
        else:
            self.profile = replace(self.profile, profile_picture_url=public_url)

        logger.info("Profile picture updated user=%s url=%s", user_id, public_url)
        await self.load(user_id)
        self._notifier.alert(UPLOAD_OK)
        return True
