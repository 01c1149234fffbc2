# tests/test_profile_picture.py

from __future__ import annotations

import pytest

from taskdeck.profile.picture import (
    NOT_AN_IMAGE,
    UPLOAD_FAILED,
    UPLOAD_OK,
    build_object_path,
    storage_path_from_url,
)

from .fakes import PUBLIC_BASE

BUCKET = "profile-pictures"


@pytest.mark.asyncio
async def test_non_image_is_rejected_without_storage_calls(state, backend, notifier) -> None:
    backend.seed("user_profiles", user_id="user-1", profile_picture_url=f"{PUBLIC_BASE}/{BUCKET}/user-1/1.png")
    await state.profile.load("user-1")
    backend.calls.clear()

    assert not await state.profile.upload("user-1", "notes.txt", b"hello", "text/plain")

    assert notifier.alerts == [NOT_AN_IMAGE]
    assert backend.calls == []
    assert state.profile.picture_url == f"{PUBLIC_BASE}/{BUCKET}/user-1/1.png"


@pytest.mark.asyncio
async def test_first_upload_creates_profile(state, backend, notifier) -> None:
    await state.profile.load("user-1")
    assert state.profile.profile is None

    assert await state.profile.upload("user-1", "me.png", b"\x89PNG", "image/png")

    [path] = backend.objects[BUCKET].keys()
    assert path.startswith("user-1/") and path.endswith(".png")
    assert state.profile.picture_url == f"{PUBLIC_BASE}/{BUCKET}/{path}"
    assert len(backend.tables["user_profiles"]) == 1
    assert backend.calls_of("remove") == []
    assert notifier.alerts == [UPLOAD_OK]
    assert state.profile.uploading is False


@pytest.mark.asyncio
async def test_replacing_picture_removes_old_object_first(state, backend) -> None:
    backend.objects[BUCKET] = {"user-1/1.png": b"old"}
    backend.seed("user_profiles", user_id="user-1", profile_picture_url=f"{PUBLIC_BASE}/{BUCKET}/user-1/1.png")
    await state.profile.load("user-1")

    assert await state.profile.upload("user-1", "new.jpg", b"jpg", "image/jpeg")

    ops = [c[0] for c in backend.calls if c[0] in ("remove", "upload", "upsert")]
    assert ops == ["remove", "upload", "upsert"]
    assert backend.calls_of("remove")[0][2] == ["user-1/1.png"]
    assert "user-1/1.png" not in backend.objects[BUCKET]
    assert len(backend.tables["user_profiles"]) == 1
    assert backend.calls_of("upsert")[0][2]["on_conflict"] == "user_id"
    assert state.profile.picture_url.endswith(".jpg")


@pytest.mark.asyncio
async def test_failed_old_removal_does_not_block_upload(state, backend, notifier) -> None:
    backend.seed("user_profiles", user_id="user-1", profile_picture_url=f"{PUBLIC_BASE}/{BUCKET}/user-1/1.png")
    await state.profile.load("user-1")
    backend.fail.add("remove")

    assert await state.profile.upload("user-1", "new.png", b"png", "image/png")

    assert len(backend.objects[BUCKET]) == 1
    assert not state.profile.picture_url.endswith("/1.png")
    assert notifier.alerts == [UPLOAD_OK]


@pytest.mark.asyncio
async def test_upload_failure_keeps_previous_url(state, backend, notifier) -> None:
    old_url = f"{PUBLIC_BASE}/{BUCKET}/user-1/1.png"
    backend.seed("user_profiles", user_id="user-1", profile_picture_url=old_url)
    await state.profile.load("user-1")
    backend.fail.add("upload")

    assert not await state.profile.upload("user-1", "new.png", b"png", "image/png")

    assert state.profile.picture_url == old_url
    assert backend.calls_of("upsert") == []
    assert notifier.alerts == [UPLOAD_FAILED]
    assert state.profile.uploading is False


def test_object_paths() -> None:
    assert storage_path_from_url(f"{PUBLIC_BASE}/{BUCKET}/user-1/1700000000000.png") == "user-1/1700000000000.png"
    assert build_object_path("user-1", "photo.jpeg", now_ms=42) == "user-1/42.jpeg"
