"""Unit tests for the Google OAuth helpers."""

from __future__ import annotations

import os
from urllib.parse import parse_qs, urlparse

import pytest

from mwarex.api.errors import ConfigurationError, ValidationError
from mwarex.config import settings
from mwarex.publishing.oauth import (
    SCOPES,
    OAuthTokens,
    build_consent_url,
    build_credentials,
    exchange_code_async,
    frontend_callback_url,
)


def test_consent_url_requests_offline_access() -> None:
    url = build_consent_url("http://localhost:3000")
    query = parse_qs(urlparse(url).query)

    assert url.startswith("https://accounts.google.com/")
    assert query["access_type"] == ["offline"]
    assert query["prompt"] == ["consent"]
    assert query["state"] == ["http://localhost:3000"]
    assert query["client_id"] == [settings.google_client_id]
    assert set(query["scope"][0].split()) == set(SCOPES)


def test_consent_url_requires_client_configuration(monkeypatch) -> None:
    monkeypatch.setattr(settings, "google_client_id", "")
    with pytest.raises(ConfigurationError):
        build_consent_url()


def test_frontend_callback_url_carries_tokens() -> None:
    tokens = OAuthTokens(access_token="at", refresh_token="rt", scope="s1 s2")
    url = frontend_callback_url(tokens, "https://studio.example.com/")
    parsed = urlparse(url)

    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
        "https://studio.example.com/oauth2callback"
    )
    assert parse_qs(parsed.query) == {
        "access_token": ["at"],
        "refresh_token": ["rt"],
        "scope": ["s1 s2"],
    }


def test_frontend_callback_url_defaults_to_frontend() -> None:
    url = frontend_callback_url(OAuthTokens("at", None, "s"))
    assert url.startswith(f"{settings.frontend_url}/oauth2callback?")


def test_build_credentials_falls_back_to_service_refresh_token(monkeypatch) -> None:
    monkeypatch.setattr(settings, "youtube_refresh_token", "service-refresh")
    creds = build_credentials(None, None)
    assert creds.refresh_token == "service-refresh"
    assert creds.client_id == settings.google_client_id


def test_build_credentials_prefers_user_refresh_token(monkeypatch) -> None:
    monkeypatch.setattr(settings, "youtube_refresh_token", "service-refresh")
    assert build_credentials("at", "user-refresh").refresh_token == "user-refresh"


def test_build_credentials_without_any_token_is_rejected(monkeypatch) -> None:
    monkeypatch.setattr(settings, "youtube_refresh_token", "")
    with pytest.raises(ValidationError):
        build_credentials(None, None)


@pytest.mark.anyio
async def test_exchange_requires_code() -> None:
    with pytest.raises(ValidationError):
        await exchange_code_async("")


@pytest.mark.anyio
async def test_exchange_failure_is_a_validation_error(monkeypatch) -> None:
    from mwarex.publishing import oauth

    def _fail(code: str):
        raise RuntimeError("invalid_grant")

    monkeypatch.setattr(oauth, "_exchange", _fail)
    with pytest.raises(ValidationError, match="invalid_grant"):
        await exchange_code_async("bad-code")


class _StubFlow:
    def __init__(self) -> None:
        self.relaxed: str | None = None
        self.credentials = build_credentials("at", "rt")

    def fetch_token(self, code: str) -> None:
        self.relaxed = os.environ.get("OAUTHLIB_RELAX_TOKEN_SCOPE")


@pytest.mark.parametrize("relax, expected", [(True, "1"), (False, None)])
def test_exchange_relaxes_token_scope_only_when_configured(monkeypatch, relax, expected) -> None:
    from mwarex.publishing import oauth

    monkeypatch.delenv("OAUTHLIB_RELAX_TOKEN_SCOPE", raising=False)
    monkeypatch.setattr(settings, "google_relax_token_scope", relax)
    flow = _StubFlow()
    monkeypatch.setattr(oauth, "_flow", lambda: flow)

    tokens = oauth._exchange("code")

    assert flow.relaxed == expected
    assert tokens.refresh_token == "rt"
