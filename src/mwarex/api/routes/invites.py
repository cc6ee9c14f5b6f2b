"""Editor invite endpoints: create, verify and exchange at editor signup."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.dependencies import require_creator
from mwarex.api.dependencies_async import get_async_db_session
from mwarex.api.routes.users import limiter
from mwarex.api.schemas import (
    EditorSignupRequest,
    ErrorResponse,
    InviteRequest,
    InviteResponse,
    InviteVerifyResponse,
    SignupResponse,
    UserResponse,
)
from mwarex.config import settings
from mwarex.observability.audit import AuditAction, log_audit_event_async
from mwarex.services import invites
from mwarex.storage.models import User

router = APIRouter(tags=["Invites"])


@router.post("/api/v1/invite", response_model=InviteResponse, status_code=201)
@limiter.limit(lambda: settings.invite_rate_limit)
async def create_invite(
    request: Request,
    body: InviteRequest,
    background_tasks: BackgroundTasks,
    creator: User = Depends(require_creator),
    session: AsyncSession = Depends(get_async_db_session),
) -> InviteResponse:
    """Mint an invite link; the email goes out after the response is sent."""
    created = await invites.create_invite(session, creator, body.email)
    await session.commit()

    background_tasks.add_task(
        invites.send_invite_email, body.email, created.invite_link, creator.name
    )
    return InviteResponse(message="Invite link generated!", invite_link=created.invite_link)


@router.get(
    "/api/v1/verify",
    response_model=InviteVerifyResponse,
    responses={404: {"model": ErrorResponse}, 410: {"model": ErrorResponse}},
)
async def verify_invite(
    token: str = Query(..., min_length=1, max_length=128),
    session: AsyncSession = Depends(get_async_db_session),
) -> InviteVerifyResponse:
    invite = await invites.verify_invite(session, token)
    return InviteVerifyResponse(
        message="invite valid, proceed to signup",
        email=invite.editor_email,
        creator_id=str(invite.creator_id),
    )


@router.post(
    "/api/editor/signup",
    response_model=SignupResponse,
    status_code=201,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        410: {"model": ErrorResponse},
    },
)
@limiter.limit(lambda: settings.auth_rate_limit)
async def editor_signup(
    request: Request,
    body: EditorSignupRequest,
    session: AsyncSession = Depends(get_async_db_session),
) -> SignupResponse:
    result = await invites.signup_editor(
        session,
        email=body.email,
        password=body.password,
        name=body.name,
        token=body.token,
    )
    await session.commit()

    if result.invite is not None:
        await log_audit_event_async(
            AuditAction.INVITE_ACCEPTED,
            user_id=str(result.editor.id),
            outcome="success",
            metadata={
                "invite_id": str(result.invite.id),
                "creator_id": str(result.invite.creator_id),
            },
        )
    return SignupResponse(
        message="Editor signup successful", user=UserResponse(**result.editor.to_dict())
    )


__all__ = ["router"]
