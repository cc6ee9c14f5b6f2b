"""Rooms: creator workspaces that editors join through an invite token."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.errors import NotFoundError, PermissionDeniedError, ValidationError
from mwarex.observability.logging import get_logger
from mwarex.storage.models import Room, User, UserRole
from mwarex.storage.repositories import RoomRepository

logger = get_logger(__name__)

__all__ = [
    "ROOM_TOKEN_BYTES",
    "JoinResult",
    "create_room",
    "verify_room_token",
    "list_rooms",
    "join_room",
    "get_room",
    "room_detail",
]

ROOM_TOKEN_BYTES = 16


@dataclass(frozen=True)
class JoinResult:
    room: Room
    joined: bool

    @property
    def message(self) -> str:
        return "Joined room successfully" if self.joined else "Already a member"


async def create_room(session: AsyncSession, owner: User, name: str | None) -> Room:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Room name is required")
    repo = RoomRepository(session)
    room = await repo.create_async(owner.id, cleaned, secrets.token_hex(ROOM_TOKEN_BYTES))
    return await repo.get_async(room.id, refresh=True) or room


async def verify_room_token(session: AsyncSession, token: str) -> Dict[str, Any]:
    room = await RoomRepository(session).get_by_invite_token_async(token)
    if room is None:
        raise NotFoundError("Invalid invite link")
    return {
        "valid": True,
        "room_id": str(room.id),
        "room_name": room.name,
        "owner_name": room.owner.name if room.owner else None,
        "owner_email": room.owner.email if room.owner else None,
    }


async def list_rooms(session: AsyncSession, user: User) -> List[Room]:
    return await RoomRepository(session).list_for_user_async(user.id)


async def join_room(session: AsyncSession, user: User, token: str) -> JoinResult:
    """Join a room by its invite token. Joining twice is a no-op."""
    repo = RoomRepository(session)
    room = await repo.get_by_invite_token_async(token)
    if room is None:
        raise NotFoundError("Invalid invite link")
    if room.has_access(user.id):
        return JoinResult(room=room, joined=False)

    try:
        async with session.begin_nested():
            await repo.add_member_async(room, user.id, role=UserRole.EDITOR.value)
    except IntegrityError:
        # A concurrent join already added this member.
        return JoinResult(room=room, joined=False)

    logger.info("room_joined", room_id=str(room.id), user_id=str(user.id), user_role=user.role)
    refreshed = await repo.get_async(room.id, refresh=True)
    return JoinResult(room=refreshed or room, joined=True)


async def get_room(session: AsyncSession, room_id: UUID, user: User) -> Room:
    room = await RoomRepository(session).get_async(room_id)
    if room is None:
        raise NotFoundError("Room not found")
    if not room.has_access(user.id):
        raise PermissionDeniedError("Access denied")
    return room


def room_detail(room: Room) -> Dict[str, Any]:
    """Room with owner and members, as returned by the room detail endpoint."""
    payload = room.to_dict()
    payload["owner"] = _person(room.owner)
    payload["members"] = [
        {
            **(_person(m.user) or {"id": str(m.user_id)}),
            "role": m.role,
            "joined_at": m.joined_at.isoformat() if m.joined_at else None,
        }
        for m in room.members
    ]
    return payload


def _person(user: User | None) -> Dict[str, Any] | None:
    if user is None:
        return None
    return {"id": str(user.id), "name": user.name, "email": user.email}
