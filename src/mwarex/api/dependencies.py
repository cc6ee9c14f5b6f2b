"""Auth gate dependencies for the MwareX API."""

from __future__ import annotations

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.dependencies_async import get_async_db_session
from mwarex.api.errors import AuthenticationError, PermissionDeniedError
from mwarex.auth.tokens import TokenScope, decode_token
from mwarex.config import settings
from mwarex.storage.models import User, UserRole
from mwarex.storage.repositories import UserRepository

__all__ = [
    "bearer_scheme",
    "token_header",
    "extract_token",
    "get_current_user",
    "require_creator",
    "require_editor",
    "require_admin",
]

bearer_scheme = HTTPBearer(auto_error=False)
# Older web clients send the raw token in a `token` header.
token_header = APIKeyHeader(name="token", auto_error=False)


def extract_token(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None,
    legacy: str | None,
) -> str | None:
    """Bearer header, then the `token` header, then the auth cookie."""
    if bearer is not None and bearer.credentials:
        return bearer.credentials
    if legacy:
        return legacy
    return request.cookies.get(settings.auth_cookie_name) or None


async def _resolve_user(session: AsyncSession, token: str, scope: TokenScope) -> User:
    claims = decode_token(token, scope=scope)
    user = await UserRepository(session).get_async(claims.user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    return user


async def get_current_user(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    legacy: str | None = Security(token_header),
    session: AsyncSession = Depends(get_async_db_session),
) -> User:
    token = extract_token(request, bearer, legacy)
    if not token:
        raise AuthenticationError("Not authenticated")
    user = await _resolve_user(session, token, TokenScope.USER)
    request.state.user_id = str(user.id)
    return user


async def require_creator(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.CREATOR.value:
        raise PermissionDeniedError("Creator access required")
    return user


async def require_editor(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.EDITOR.value:
        raise PermissionDeniedError("Editor access required")
    return user


async def require_admin(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    legacy: str | None = Security(token_header),
    session: AsyncSession = Depends(get_async_db_session),
) -> User:
    """Admin sessions are signed with the admin secret; user tokens never pass."""
    token = extract_token(request, bearer, legacy)
    if not token:
        raise AuthenticationError("Not authenticated")
    user = await _resolve_user(session, token, TokenScope.ADMIN)
    if user.role != UserRole.ADMIN.value:
        raise PermissionDeniedError("Admin access required")
    return user
