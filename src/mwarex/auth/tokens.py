"""Signed session tokens (JWT, HS256).

User and admin sessions are signed with different secrets so a user token can
never be replayed against admin endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from uuid import UUID

import jwt

from mwarex.api.errors import AuthenticationError
from mwarex.config import settings

__all__ = ["TokenScope", "TokenClaims", "issue_token", "decode_token"]


class TokenScope(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class TokenClaims:
    user_id: UUID
    role: str
    issued_at: datetime
    expires_at: datetime


def _secret(scope: TokenScope) -> str:
    return settings.jwt_secret_admin if scope is TokenScope.ADMIN else settings.jwt_secret_user


def issue_token(
    user_id: UUID,
    role: str,
    *,
    scope: TokenScope = TokenScope.USER,
    ttl: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    lifetime = ttl if ttl is not None else timedelta(hours=settings.jwt_ttl_hours)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
    }
    return jwt.encode(payload, _secret(scope), algorithm=settings.jwt_algorithm)


def decode_token(token: str, *, scope: TokenScope = TokenScope.USER) -> TokenClaims:
    """Verify signature and expiry; raises AuthenticationError on any failure."""
    try:
        payload = jwt.decode(
            token,
            _secret(scope),
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Session expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token") from exc

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError as exc:
        raise AuthenticationError("Invalid token subject") from exc

    return TokenClaims(
        user_id=user_id,
        role=str(payload.get("role") or ""),
        issued_at=datetime.fromtimestamp(int(payload.get("iat", 0)), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )
