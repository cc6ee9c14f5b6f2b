"""Admin account endpoints. Admin sessions use their own signing secret."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.dependencies import bearer_scheme, extract_token, require_admin, token_header
from mwarex.api.dependencies_async import get_async_db_session
from mwarex.api.errors import PermissionDeniedError
from mwarex.api.routes.users import limiter
from mwarex.api.schemas import (
    ErrorResponse,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UserResponse,
)
from mwarex.auth.tokens import TokenScope, decode_token
from mwarex.config import settings
from mwarex.observability.logging import get_logger
from mwarex.services import accounts
from mwarex.storage.models import User, UserRole
from mwarex.storage.repositories import UserRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=201,
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(lambda: settings.auth_rate_limit)
async def admin_signup(
    request: Request,
    body: SignupRequest,
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    legacy: str | None = Security(token_header),
    session: AsyncSession = Depends(get_async_db_session),
) -> SignupResponse:
    """Create an admin. The first admin bootstraps freely; later ones need an admin session."""
    if await UserRepository(session).has_role_async(UserRole.ADMIN):
        token = extract_token(request, bearer, legacy)
        if not token:
            raise PermissionDeniedError("Only an admin can create another admin")
        decode_token(token, scope=TokenScope.ADMIN)

    admin = await accounts.create_account(
        session,
        email=body.email,
        password=body.password,
        name=body.name,
        role=UserRole.ADMIN,
    )
    await session.commit()
    logger.info("admin_created", admin_id=str(admin.id))
    return SignupResponse(message="Admin signup successful", user=UserResponse(**admin.to_dict()))


@router.post(
    "/signin",
    response_model=SigninResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
@limiter.limit(lambda: settings.auth_rate_limit)
async def admin_signin(
    request: Request,
    body: SigninRequest,
    session: AsyncSession = Depends(get_async_db_session),
) -> SigninResponse:
    # No cookie: the auth cookie carries user-scoped sessions only.
    result = await accounts.sign_in(
        session, email=body.email, password=body.password, scope=TokenScope.ADMIN
    )
    return SigninResponse(
        message="Admin signin successful",
        token=result.token,
        user=UserResponse(**result.user.to_dict()),
    )


@router.get("/me", response_model=UserResponse)
async def admin_me(admin: User = Depends(require_admin)) -> UserResponse:
    return UserResponse(**admin.to_dict())


__all__ = ["router"]
