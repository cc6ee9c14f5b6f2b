"""Creator/editor account endpoints: signup, signin, profile, linked editors, settings."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from slowapi import Limiter
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.dependencies import get_current_user, require_creator
from mwarex.api.dependencies_async import get_async_db_session
from mwarex.api.errors import ValidationError
from mwarex.api.rate_limit import key_auth_or_ip
from mwarex.api.schemas import (
    ErrorResponse,
    MessageResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UserResponse,
    UserSettings,
)
from mwarex.config import settings
from mwarex.observability.logging import get_logger
from mwarex.services import accounts
from mwarex.storage.models import DEFAULT_USER_SETTINGS, User, UserRole

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/user", tags=["Users"])

limiter = Limiter(key_func=key_auth_or_ip)


def set_auth_cookie(response: Response, token: str) -> None:
    secure = settings.auth_cookie_secure
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=secure,
        samesite="none" if secure else "lax",
        max_age=settings.jwt_ttl_hours * 3600,
    )


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=201,
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(lambda: settings.auth_rate_limit)
async def signup(
    request: Request,
    body: SignupRequest,
    session: AsyncSession = Depends(get_async_db_session),
) -> SignupResponse:
    creator_id = None
    if body.creator_id:
        try:
            creator_id = UUID(body.creator_id)
        except ValueError as exc:
            raise ValidationError("creator_id must be a UUID") from exc

    user = await accounts.create_account(
        session,
        email=body.email,
        password=body.password,
        name=body.name,
        role=UserRole(body.role),
        creator_id=creator_id,
    )
    await session.commit()
    return SignupResponse(message="Signup successful", user=UserResponse(**user.to_dict()))


@router.post(
    "/signin",
    response_model=SigninResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
@limiter.limit(lambda: settings.auth_rate_limit)
async def signin(
    request: Request,
    response: Response,
    body: SigninRequest,
    session: AsyncSession = Depends(get_async_db_session),
) -> SigninResponse:
    result = await accounts.sign_in(session, email=body.email, password=body.password)
    set_auth_cookie(response, result.token)
    return SigninResponse(
        message="Signin successful",
        token=result.token,
        user=UserResponse(**result.user.to_dict()),
    )


@router.post("/signout", response_model=MessageResponse)
async def signout(response: Response) -> MessageResponse:
    response.delete_cookie(settings.auth_cookie_name)
    return MessageResponse(message="Signed out")


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse(**user.to_dict())


@router.get("/editors", response_model=list[UserResponse])
async def list_editors(
    creator: User = Depends(require_creator),
    session: AsyncSession = Depends(get_async_db_session),
) -> list[UserResponse]:
    editors = await accounts.list_editors(session, creator)
    return [UserResponse(**e.to_dict()) for e in editors]


@router.delete(
    "/editors/{editor_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def remove_editor(
    editor_id: UUID,
    creator: User = Depends(require_creator),
    session: AsyncSession = Depends(get_async_db_session),
) -> MessageResponse:
    await accounts.remove_editor(session, creator, editor_id)
    await session.commit()
    return MessageResponse(message="Editor removed successfully")


@router.get("/get-settings", response_model=SettingsResponse)
async def get_settings(user: User = Depends(get_current_user)) -> SettingsResponse:
    merged = {**DEFAULT_USER_SETTINGS, **(user.settings or {})}
    return SettingsResponse(message="Settings fetched", settings=UserSettings(**merged))


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    body: SettingsUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> SettingsResponse:
    values = body.settings.model_dump(exclude_none=True)
    user = await accounts.update_settings(session, user, values)
    await session.commit()
    merged = {**DEFAULT_USER_SETTINGS, **(user.settings or {})}
    return SettingsResponse(message="Settings Saved", settings=UserSettings(**merged))


__all__ = ["router", "limiter", "set_auth_cookie"]
