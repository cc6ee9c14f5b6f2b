"""API tests for the YouTube OAuth redirect endpoints."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest

from mwarex.publishing.oauth import OAuthTokens

pytestmark = pytest.mark.anyio


async def test_consent_redirect_keeps_trusted_origin(async_client) -> None:
    resp = await async_client.get("/auth/google", params={"origin": "http://localhost:3000/"})
    assert resp.status_code == 307
    location = resp.headers["location"]
    assert location.startswith("https://accounts.google.com/")
    assert parse_qs(urlparse(location).query)["state"] == ["http://localhost:3000"]


async def test_consent_redirect_drops_untrusted_origin(async_client) -> None:
    resp = await async_client.get("/auth/google", params={"origin": "https://evil.example"})
    assert resp.status_code == 307
    assert "evil.example" not in resp.headers["location"]


async def test_callback_hands_tokens_to_frontend(async_client, monkeypatch) -> None:
    async def _fake_exchange(code: str) -> OAuthTokens:
        assert code == "auth-code"
        return OAuthTokens(access_token="at", refresh_token="rt", scope="youtube")

    monkeypatch.setattr(
        "mwarex.api.routes.google_auth.exchange_code_async", _fake_exchange
    )
    resp = await async_client.get(
        "/oauth2callback",
        params={"code": "auth-code", "state": "https://evil.example"},
    )
    assert resp.status_code == 307
    parsed = urlparse(resp.headers["location"])
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
        "http://localhost:3000/oauth2callback"
    )
    assert parse_qs(parsed.query)["refresh_token"] == ["rt"]


async def test_callback_requires_code(async_client) -> None:
    resp = await async_client.get("/oauth2callback")
    assert resp.status_code == 422
