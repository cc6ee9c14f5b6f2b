"""API tests for admin accounts."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.anyio


async def _admin_signup(client, email: str, headers: dict | None = None):
    return await client.post(
        "/api/v1/admin/signup",
        json={"email": email, "password": "admin-pass", "name": "Root"},
        headers=headers or {},
    )


async def test_first_admin_bootstraps_then_gate_closes(async_client, unique_email) -> None:
    first_email = unique_email("admin")
    resp = await _admin_signup(async_client, first_email)
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "admin"

    resp = await _admin_signup(async_client, unique_email("admin"))
    assert resp.status_code == 403

    resp = await async_client.post(
        "/api/v1/admin/signin", json={"email": first_email, "password": "admin-pass"}
    )
    assert resp.status_code == 200
    assert resp.cookies.get("auth") is None
    admin_headers = {"Authorization": f"Bearer {resp.json()['token']}"}

    resp = await async_client.get("/api/v1/admin/me", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == first_email

    resp = await _admin_signup(async_client, unique_email("admin"), headers=admin_headers)
    assert resp.status_code == 201


async def test_user_tokens_never_pass_admin_checks(async_client, register) -> None:
    _, user_headers = await register(async_client)

    resp = await async_client.get("/api/v1/admin/me", headers=user_headers)
    assert resp.status_code == 401

    resp = await async_client.get("/api/v1/admin/me")
    assert resp.status_code == 401


async def test_creators_cannot_use_admin_signin(async_client, register, unique_email) -> None:
    email = unique_email("creator")
    await register(async_client, email=email)

    resp = await async_client.post(
        "/api/v1/admin/signin", json={"email": email, "password": "secret-pass"}
    )
    assert resp.status_code == 404
