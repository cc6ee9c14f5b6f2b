"""Google OAuth consent and callback endpoints for connecting a YouTube channel."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import RedirectResponse

from mwarex.config import settings
from mwarex.observability.logging import get_logger
from mwarex.publishing.oauth import build_consent_url, exchange_code_async, frontend_callback_url

logger = get_logger(__name__)

router = APIRouter(tags=["YouTube OAuth"])


def _trusted_origin(origin: Optional[str]) -> Optional[str]:
    """Only redirect tokens to the web client or an allow-listed origin."""
    if not origin:
        return None
    cleaned = origin.rstrip("/")
    if cleaned == settings.frontend_url or cleaned in settings.cors_origins:
        return cleaned
    logger.warning("oauth_origin_rejected", origin=origin)
    return None


@router.get("/auth/google")
async def google_consent(origin: Optional[str] = Query(None)) -> RedirectResponse:
    """Redirect to Google's consent screen; the caller origin rides along as ``state``."""
    return RedirectResponse(build_consent_url(_trusted_origin(origin)), status_code=307)


@router.get("/oauth2callback")
async def oauth2_callback(
    code: str = Query(..., min_length=1),
    state: Optional[str] = Query(None),
) -> RedirectResponse:
    """Exchange the authorization code and hand the tokens to the web client."""
    tokens = await exchange_code_async(code)
    return RedirectResponse(
        frontend_callback_url(tokens, _trusted_origin(state)), status_code=307
    )


__all__ = ["router"]
