"""Google OAuth for YouTube publishing.

Creators connect their channel once through the consent screen; the refresh
token returned with ``access_type=offline`` is stored on their user row and
used for every later upload.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from mwarex.api.errors import ConfigurationError, PublishError, ValidationError
from mwarex.config import settings
from mwarex.observability.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "SCOPES",
    "TOKEN_URI",
    "OAuthTokens",
    "build_consent_url",
    "exchange_code_async",
    "frontend_callback_url",
    "build_credentials",
    "refresh_credentials_async",
]

SCOPES = [
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]
TOKEN_URI = "https://oauth2.googleapis.com/token"
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"


@dataclass(frozen=True)
class OAuthTokens:
    access_token: Optional[str]
    refresh_token: Optional[str]
    scope: str


def _require_client() -> tuple[str, str]:
    if not settings.google_client_id or not settings.google_client_secret:
        raise ConfigurationError("Google OAuth client is not configured")
    return settings.google_client_id, settings.google_client_secret


def _client_config() -> dict[str, Any]:
    client_id, client_secret = _require_client()
    return {
        "web": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [settings.google_redirect],
        }
    }


def _flow() -> Flow:
    # The consent URL and the callback exchange run in different requests, so no PKCE verifier.
    flow = Flow.from_client_config(_client_config(), scopes=SCOPES)
    flow.autogenerate_code_verifier = False
    flow.redirect_uri = settings.google_redirect
    return flow


def build_consent_url(origin: str | None = None) -> str:
    """Consent URL that always yields a refresh token; ``origin`` round-trips as ``state``."""
    url, _state = _flow().authorization_url(
        access_type="offline",
        prompt="consent",
        include_granted_scopes="true",
        state=origin or "",
    )
    return url


def _exchange(code: str) -> OAuthTokens:
    flow = _flow()
    if settings.google_relax_token_scope:
        # oauthlib reads this at validation time and rejects the extra openid scope otherwise.
        os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")
    flow.fetch_token(code=code)
    creds = flow.credentials
    return OAuthTokens(
        access_token=creds.token,
        refresh_token=creds.refresh_token,
        scope=" ".join(creds.scopes or SCOPES),
    )


async def exchange_code_async(code: str) -> OAuthTokens:
    if not code:
        raise ValidationError("Missing authorization code")
    try:
        tokens = await asyncio.to_thread(_exchange, code)
    except ConfigurationError:
        raise
    except Exception as exc:
        logger.error("oauth_code_exchange_failed", error=str(exc))
        raise ValidationError(f"Could not exchange authorization code: {exc}") from exc
    logger.info("oauth_code_exchanged", has_refresh_token=bool(tokens.refresh_token))
    return tokens


def frontend_callback_url(tokens: OAuthTokens, origin: str | None = None) -> str:
    """Where the browser lands after consent, carrying the tokens for the web client."""
    base = (origin or settings.frontend_url).rstrip("/")
    query = urlencode(
        {
            "access_token": tokens.access_token or "",
            "refresh_token": tokens.refresh_token or "",
            "scope": tokens.scope,
        }
    )
    return f"{base}/oauth2callback?{query}"


def build_credentials(access_token: str | None, refresh_token: str | None) -> Credentials:
    """Credentials for a creator, falling back to the service refresh token."""
    client_id, client_secret = _require_client()
    refresh = refresh_token or settings.youtube_refresh_token or None
    if not refresh and not access_token:
        raise ValidationError("YouTube is not connected for this account")
    return Credentials(
        token=access_token,
        refresh_token=refresh,
        token_uri=TOKEN_URI,
        client_id=client_id,
        client_secret=client_secret,
        scopes=SCOPES,
    )


async def refresh_credentials_async(credentials: Credentials) -> bool:
    """Refresh the access token when a refresh token is available.

    Stored access tokens carry no expiry, so any credential with a refresh token
    is refreshed before an upload. Returns True when the token changed.
    """
    if not credentials.refresh_token:
        return False
    previous = credentials.token
    try:
        await asyncio.to_thread(credentials.refresh, Request())
    except RefreshError as exc:
        raise PublishError(f"YouTube authorization expired or was revoked: {exc}") from exc
    logger.debug("youtube_credentials_refreshed")
    return credentials.token != previous
