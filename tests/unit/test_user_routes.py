"""API tests for signup, signin, profile, editors and settings."""

from __future__ import annotations

import pytest


pytestmark = pytest.mark.anyio


async def test_signup_and_signin_issue_token_and_cookie(async_client, unique_email) -> None:
    email = unique_email()
    resp = await async_client.post(
        "/api/v1/user/signup",
        json={"email": email, "password": "secret-pass", "name": "Casey"},
    )
    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["role"] == "creator"
    assert "password_hash" not in user

    resp = await async_client.post(
        "/api/v1/user/signin", json={"email": email, "password": "secret-pass"}
    )
    assert resp.status_code == 200
    assert resp.json()["token"]
    set_cookie = resp.headers.get("set-cookie", "")
    assert set_cookie.startswith("auth=")
    assert "httponly" in set_cookie.lower()

    # The cookie alone authenticates.
    me = await async_client.get("/api/v1/user/me")
    assert me.status_code == 200
    assert me.json()["email"] == email


async def test_duplicate_signup_conflicts(async_client, register, unique_email) -> None:
    email = unique_email()
    await register(async_client, email=email)
    resp = await async_client.post(
        "/api/v1/user/signup", json={"email": email.upper(), "password": "secret-pass"}
    )
    assert resp.status_code == 409
    assert resp.json() == {"error": "conflict", "detail": "User already exists"}


async def test_signin_unknown_and_wrong_password(async_client, register, unique_email) -> None:
    resp = await async_client.post(
        "/api/v1/user/signin", json={"email": unique_email(), "password": "whatever"}
    )
    assert resp.status_code == 404

    email = unique_email()
    await register(async_client, email=email)
    resp = await async_client.post(
        "/api/v1/user/signin", json={"email": email, "password": "wrong-pass"}
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"


async def test_signup_validates_payload(async_client, unique_email) -> None:
    resp = await async_client.post(
        "/api/v1/user/signup", json={"email": "not-an-email", "password": "secret-pass"}
    )
    assert resp.status_code == 422

    resp = await async_client.post(
        "/api/v1/user/signup",
        json={"email": unique_email(), "password": "secret-pass", "creator_id": "nope"},
    )
    assert resp.status_code == 400

    resp = await async_client.post(
        "/api/v1/user/signup",
        json={
            "email": unique_email(),
            "password": "secret-pass",
            "role": "editor",
            "creator_id": "00000000-0000-0000-0000-000000000000",
        },
    )
    assert resp.status_code == 404


async def test_me_requires_authentication(async_client) -> None:
    resp = await async_client.get("/api/v1/user/me")
    assert resp.status_code == 401

    resp = await async_client.get("/api/v1/user/me", headers={"Authorization": "Bearer junk"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


async def test_legacy_token_header_is_accepted(async_client, register) -> None:
    _, headers = await register(async_client)
    token = headers["Authorization"].split(" ", 1)[1]
    resp = await async_client.get("/api/v1/user/me", headers={"token": token})
    assert resp.status_code == 200


async def test_signout_clears_cookie(async_client) -> None:
    resp = await async_client.post("/api/v1/user/signout")
    assert resp.status_code == 200
    assert 'auth=""' in resp.headers.get("set-cookie", "")


async def test_creator_lists_and_removes_linked_editors(async_client, register) -> None:
    creator, creator_headers = await register(async_client)
    editor, _ = await register(async_client, role="editor", creator_id=creator["id"])
    stranger, stranger_headers = await register(async_client)

    resp = await async_client.get("/api/v1/user/editors", headers=creator_headers)
    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()] == [editor["id"]]

    resp = await async_client.delete(
        f"/api/v1/user/editors/{editor['id']}", headers=stranger_headers
    )
    assert resp.status_code == 404

    resp = await async_client.delete(
        f"/api/v1/user/editors/{editor['id']}", headers=creator_headers
    )
    assert resp.status_code == 200
    resp = await async_client.get("/api/v1/user/editors", headers=creator_headers)
    assert resp.json() == []


async def test_editor_cannot_list_editors(async_client, register) -> None:
    _, headers = await register(async_client, role="editor")
    resp = await async_client.get("/api/v1/user/editors", headers=headers)
    assert resp.status_code == 403


async def test_settings_defaults_and_partial_update(async_client, register) -> None:
    _, headers = await register(async_client)

    resp = await async_client.get("/api/v1/user/get-settings", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["settings"]["content_moderation"] == "medium"

    resp = await async_client.put(
        "/api/v1/user/settings",
        json={"settings": {"content_moderation": "high", "push_notifications": True}},
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Settings Saved"
    assert body["settings"]["content_moderation"] == "high"
    assert body["settings"]["push_notifications"] is True
    assert body["settings"]["ai_auto_suggest"] is True

    resp = await async_client.get("/api/v1/user/get-settings", headers=headers)
    assert resp.json()["settings"]["content_moderation"] == "high"

    resp = await async_client.put(
        "/api/v1/user/settings",
        json={"settings": {"content_moderation": "extreme"}},
        headers=headers,
    )
    assert resp.status_code == 422
