# tests/test_supabase_client.py

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from taskdeck.backend.client import SupabaseClient
from taskdeck.backend.errors import AuthError, BackendError

URL = "https://proj.supabase.co"
KEY = "anon-key"


def _settings(**overrides) -> SimpleNamespace:
    values = dict(
        supabase_url=URL,
        supabase_anon_key=KEY,
        http_connect_timeout=1.0,
        http_read_timeout=1.0,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._responses:
            return self._responses.pop(0)
        return httpx.Response(200, json=[])


def _client(recorder) -> SupabaseClient:
    return SupabaseClient(_settings(), transport=httpx.MockTransport(recorder))


@pytest.mark.asyncio
async def test_select_builds_postgrest_query() -> None:
    rec = Recorder(httpx.Response(200, json=[{"id": "t1", "title": "x"}]))
    client = _client(rec)

    rows = await client.select("tasks", filters={"user_id": "u1"}, order="created_at", ascending=False)

    assert rows == [{"id": "t1", "title": "x"}]
    req = rec.requests[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/tasks"
    assert req.url.params["user_id"] == "eq.u1"
    assert req.url.params["order"] == "created_at.desc"
    assert req.url.params["select"] == "*"
    assert req.headers["apikey"] == KEY
    assert req.headers["authorization"] == f"Bearer {KEY}"
    await client.close()


@pytest.mark.asyncio
async def test_insert_update_delete_and_upsert_requests() -> None:
    rec = Recorder(
        httpx.Response(201, json=[{"id": "t1"}]),
        httpx.Response(200, json=[{"id": "t1", "completed": True}]),
        httpx.Response(204),
        httpx.Response(201, json=[{"id": "p1"}]),
    )
    client = _client(rec)

    assert await client.insert("tasks", {"title": "x"}) == [{"id": "t1"}]
    await client.update("subtasks", {"completed": True}, filters={"id": "s1"})
    await client.delete("tasks", filters={"id": "t1"})
    await client.upsert("user_profiles", {"user_id": "u1"}, on_conflict="user_id")

    ins, upd, dele, ups = rec.requests
    assert ins.method == "POST" and ins.headers["prefer"] == "return=representation"
    assert json.loads(ins.content) == {"title": "x"}
    assert upd.method == "PATCH" and upd.url.params["id"] == "eq.s1"
    assert json.loads(upd.content) == {"completed": True}
    assert dele.method == "DELETE" and dele.url.params["id"] == "eq.t1"
    assert ups.url.params["on_conflict"] == "user_id"
    assert "resolution=merge-duplicates" in ups.headers["prefer"]
    await client.close()


@pytest.mark.asyncio
async def test_sign_in_uses_access_token_afterwards() -> None:
    rec = Recorder(
        httpx.Response(200, json={"access_token": "tok", "user": {"id": "u1", "email": "a@b.c"}}),
        httpx.Response(200, json={"id": "u1", "email": "a@b.c"}),
    )
    client = _client(rec)

    data = await client.sign_in("a@b.c", "pw")
    user = await client.get_user()

    assert data["user"]["id"] == "u1"
    assert user == {"id": "u1", "email": "a@b.c"}
    login, me = rec.requests
    assert login.url.path == "/auth/v1/token"
    assert login.url.params["grant_type"] == "password"
    assert me.headers["authorization"] == "Bearer tok"
    await client.close()


@pytest.mark.asyncio
async def test_get_user_without_token_makes_no_request() -> None:
    rec = Recorder()
    client = _client(rec)

    assert await client.get_user() is None
    assert rec.requests == []
    await client.close()


@pytest.mark.asyncio
async def test_error_responses_are_raised_with_backend_message() -> None:
    rec = Recorder(
        httpx.Response(400, json={"message": "invalid input value for enum"}),
        httpx.Response(401, json={"msg": "JWT expired"}),
    )
    client = _client(rec)

    with pytest.raises(BackendError) as bad:
        await client.insert("tasks", {"priority": "urgent"})
    assert bad.value.status == 400
    assert "invalid input value for enum" in str(bad.value)

    with pytest.raises(AuthError) as denied:
        await client.select("tasks")
    assert denied.value.status == 401
    await client.close()


@pytest.mark.asyncio
async def test_transport_failure_becomes_backend_error() -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = SupabaseClient(_settings(), transport=httpx.MockTransport(boom))

    with pytest.raises(BackendError) as err:
        await client.select("tasks")
    assert err.value.status is None
    assert isinstance(err.value.__cause__, httpx.ConnectError)
    await client.close()


@pytest.mark.asyncio
async def test_storage_and_functions() -> None:
    rec = Recorder(
        httpx.Response(200, json={"Key": "profile-pictures/u1/1.png"}),
        httpx.Response(200, json=[]),
        httpx.Response(200, json={"subtasks": ["a", "b"]}),
    )
    client = _client(rec)

    await client.upload("profile-pictures", "u1/1.png", b"img", content_type="image/png")
    await client.remove("profile-pictures", ["u1/0.png"])
    result = await client.invoke("generate-subtasks", {"taskTitle": "Plan launch"})

    up, rm, fn = rec.requests
    assert up.url.path == "/storage/v1/object/profile-pictures/u1/1.png"
    assert up.headers["content-type"] == "image/png"
    assert up.headers["x-upsert"] == "false"
    assert up.content == b"img"
    assert rm.method == "DELETE" and json.loads(rm.content) == {"prefixes": ["u1/0.png"]}
    assert fn.url.path == "/functions/v1/generate-subtasks"
    assert json.loads(fn.content) == {"taskTitle": "Plan launch"}
    assert result == {"subtasks": ["a", "b"]}
    assert client.public_url("profile-pictures", "u1/1.png") == (
        f"{URL}/storage/v1/object/public/profile-pictures/u1/1.png"
    )
    await client.close()


def test_missing_configuration_is_reported() -> None:
    with pytest.raises(RuntimeError, match="URL"):
        SupabaseClient(_settings(supabase_url=""))
    with pytest.raises(RuntimeError, match="key"):
        SupabaseClient(_settings(supabase_anon_key=None))
