"""Room endpoints: create, verify invite token, list, join and detail."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.dependencies import get_current_user, require_creator
from mwarex.api.dependencies_async import get_async_db_session
from mwarex.api.schemas import (
    ErrorResponse,
    RoomCreateRequest,
    RoomDetailResponse,
    RoomJoinRequest,
    RoomJoinResponse,
    RoomResponse,
    RoomVerifyResponse,
)
from mwarex.observability.audit import AuditAction, log_audit_event_async
from mwarex.services import rooms
from mwarex.storage.models import User

router = APIRouter(prefix="/api/v1/rooms", tags=["Rooms"])


@router.post("/create", response_model=RoomResponse, status_code=201)
async def create_room(
    body: RoomCreateRequest,
    owner: User = Depends(require_creator),
    session: AsyncSession = Depends(get_async_db_session),
) -> RoomResponse:
    room = await rooms.create_room(session, owner, body.name)
    await session.commit()
    return RoomResponse(**room.to_dict())


@router.get(
    "/verify/{token}",
    response_model=RoomVerifyResponse,
    responses={404: {"model": ErrorResponse}},
)
async def verify_room(
    token: str,
    session: AsyncSession = Depends(get_async_db_session),
) -> RoomVerifyResponse:
    return RoomVerifyResponse(**await rooms.verify_room_token(session, token))


@router.get("/list", response_model=list[RoomResponse])
async def list_rooms(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> list[RoomResponse]:
    return [RoomResponse(**r.to_dict()) for r in await rooms.list_rooms(session, user)]


@router.post(
    "/join",
    response_model=RoomJoinResponse,
    responses={404: {"model": ErrorResponse}},
)
async def join_room(
    body: RoomJoinRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> RoomJoinResponse:
    result = await rooms.join_room(session, user, body.token)
    await session.commit()
    if result.joined:
        await log_audit_event_async(
            AuditAction.ROOM_JOINED,
            user_id=str(user.id),
            outcome="success",
            metadata={"room_id": str(result.room.id)},
        )
    return RoomJoinResponse(message=result.message, room=RoomResponse(**result.room.to_dict()))


@router.get(
    "/{room_id}",
    response_model=RoomDetailResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_room(
    room_id: UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> RoomDetailResponse:
    room = await rooms.get_room(session, room_id, user)
    return RoomDetailResponse(**rooms.room_detail(room))


__all__ = ["router"]
