"""Unit tests for the rate-limit bucket key."""

from __future__ import annotations

from starlette.requests import Request

from mwarex.api.rate_limit import key_auth_or_ip


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/",
            "headers": raw,
            "client": ("10.0.0.7", 5000),
        }
    )


def test_bearer_token_wins() -> None:
    req = _request({"Authorization": "Bearer abc", "token": "legacy"})
    assert key_auth_or_ip(req) == "bearer:abc"


def test_legacy_header_then_cookie() -> None:
    assert key_auth_or_ip(_request({"token": "legacy"})) == "token:legacy"
    assert key_auth_or_ip(_request({"Cookie": "auth=cookie-token"})) == "cookie:cookie-token"


def test_anonymous_requests_bucket_by_ip() -> None:
    assert key_auth_or_ip(_request()) == "ip:10.0.0.7"
