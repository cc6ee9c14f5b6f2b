"""API tests for editor invites."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest

from mwarex.notifications.mailer import get_email_notifier

pytestmark = pytest.mark.anyio


def _token(invite_link: str) -> str:
    return parse_qs(urlparse(invite_link).query)["token"][0]


async def test_invite_is_exchanged_exactly_once(async_client, register, unique_email) -> None:
    creator, headers = await register(async_client, name="Casey")
    editor_email = unique_email("editor")

    resp = await async_client.post(
        "/api/v1/invite", json={"email": editor_email}, headers=headers
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Invite link generated!"
    assert body["invite_link"].startswith("http://localhost:3000/join?token=")
    token = _token(body["invite_link"])

    # The invite email went out after the response.
    outbox = get_email_notifier().outbox
    assert [m.to for m in outbox] == [editor_email]
    assert body["invite_link"] in outbox[0].text
    assert "Casey" in outbox[0].text

    resp = await async_client.get("/api/v1/verify", params={"token": token})
    assert resp.status_code == 200
    assert resp.json()["email"] == editor_email
    assert resp.json()["creator_id"] == creator["id"]

    resp = await async_client.post(
        "/api/editor/signup",
        json={"email": editor_email, "password": "secret-pass", "name": "Ed", "token": token},
    )
    assert resp.status_code == 201
    editor = resp.json()["user"]
    assert editor["role"] == "editor"
    assert editor["creator_id"] == creator["id"]

    resp = await async_client.get("/api/v1/verify", params={"token": token})
    assert resp.status_code == 410
    assert resp.json()["error"] == "gone"

    resp = await async_client.post(
        "/api/editor/signup",
        json={"email": unique_email("late"), "password": "secret-pass", "token": token},
    )
    assert resp.status_code == 410


async def test_editor_signup_without_token_uses_pending_invite(
    async_client, register, unique_email
) -> None:
    creator, headers = await register(async_client)
    editor_email = unique_email("editor")
    await async_client.post("/api/v1/invite", json={"email": editor_email}, headers=headers)

    resp = await async_client.post(
        "/api/editor/signup", json={"email": editor_email, "password": "secret-pass"}
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["creator_id"] == creator["id"]


async def test_editor_signup_without_invite_is_unlinked(async_client, unique_email) -> None:
    resp = await async_client.post(
        "/api/editor/signup", json={"email": unique_email("solo"), "password": "secret-pass"}
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["creator_id"] is None


async def test_unknown_invite_token(async_client, unique_email) -> None:
    resp = await async_client.get("/api/v1/verify", params={"token": "missing"})
    assert resp.status_code == 404

    resp = await async_client.post(
        "/api/editor/signup",
        json={"email": unique_email(), "password": "secret-pass", "token": "missing"},
    )
    assert resp.status_code == 404


async def test_only_creators_can_invite(async_client, register, unique_email) -> None:
    _, editor_headers = await register(async_client, role="editor")
    resp = await async_client.post(
        "/api/v1/invite", json={"email": unique_email()}, headers=editor_headers
    )
    assert resp.status_code == 403

    resp = await async_client.post("/api/v1/invite", json={"email": unique_email()})
    assert resp.status_code == 401
