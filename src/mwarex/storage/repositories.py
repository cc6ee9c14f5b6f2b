"""Data access repositories."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from mwarex.observability.logging import get_logger
from mwarex.storage.models import (
    AuditLog,
    EditorInvite,
    Feedback,
    InviteStatus,
    Room,
    RoomMember,
    User,
    UserRole,
    Video,
    VideoComment,
    VideoStatus,
)

logger = get_logger(__name__)

__all__ = [
    "UserRepository",
    "InviteRepository",
    "RoomRepository",
    "VideoRepository",
    "FeedbackRepository",
    "AuditLogRepository",
]


def _naive_utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRepository:
    """Repository for User accounts and their stored YouTube credentials."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_async(
        self,
        email: str,
        password_hash: str,
        name: str | None = None,
        role: UserRole = UserRole.CREATOR,
        creator_id: UUID | None = None,
    ) -> User:
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            name=name,
            role=role.value,
            creator_id=creator_id,
        )
        self.session.add(user)
        await self.session.flush()
        logger.info("Created %s account %s", role.value, user.id)
        return user

    async def get_async(self, user_id: UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_email_async(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def has_role_async(self, role: UserRole) -> bool:
        result = await self.session.execute(select(User.id).where(User.role == role.value).limit(1))
        return result.first() is not None

    async def list_editors_async(self, creator_id: UUID) -> List[User]:
        result = await self.session.execute(
            select(User)
            .where(User.creator_id == creator_id, User.role == UserRole.EDITOR.value)
            .order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def unlink_editor_async(self, editor: User) -> User:
        editor.creator_id = None
        await self.session.flush()
        logger.info("Unlinked editor %s", editor.id)
        return editor

    async def update_settings_async(self, user: User, values: Dict[str, Any]) -> User:
        merged = dict(user.settings or {})
        merged.update(values)
        user.settings = merged
        flag_modified(user, "settings")
        await self.session.flush()
        return user

    async def update_youtube_tokens_async(
        self,
        user: User,
        *,
        access_token: str | None,
        refresh_token: str | None,
    ) -> User:
        """Store OAuth tokens; a missing refresh token keeps the previous one."""
        if access_token is not None:
            user.youtube_access_token = access_token
        if refresh_token:
            user.youtube_refresh_token = refresh_token
        user.youtube_tokens_updated_at = _naive_utc_now()
        await self.session.flush()
        logger.info("Updated YouTube tokens for user %s", user.id)
        return user


class InviteRepository:
    """Repository for creator-to-editor invites."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_async(self, creator_id: UUID, editor_email: str, token: str) -> EditorInvite:
        invite = EditorInvite(
            creator_id=creator_id,
            editor_email=editor_email.strip().lower(),
            invite_token=token,
            status=InviteStatus.INVITED.value,
        )
        self.session.add(invite)
        await self.session.flush()
        logger.info("Created editor invite %s for creator %s", invite.id, creator_id)
        return invite

    async def get_by_token_async(self, token: str) -> Optional[EditorInvite]:
        result = await self.session.execute(
            select(EditorInvite).where(EditorInvite.invite_token == token)
        )
        return result.scalar_one_or_none()

    async def get_by_token_for_update_async(self, token: str) -> Optional[EditorInvite]:
        """Lock the invite row so concurrent signups cannot both exchange it."""
        stmt = select(EditorInvite).where(EditorInvite.invite_token == token).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def latest_pending_for_email_async(self, email: str) -> Optional[EditorInvite]:
        stmt = (
            select(EditorInvite)
            .where(
                EditorInvite.editor_email == email.strip().lower(),
                EditorInvite.status == InviteStatus.INVITED.value,
            )
            .order_by(EditorInvite.created_at.desc())
            .limit(1)
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_accepted_async(self, invite: EditorInvite, editor_id: UUID) -> EditorInvite:
        invite.status = InviteStatus.ACCEPTED.value
        invite.editor_id = editor_id
        await self.session.flush()
        logger.info("Invite %s accepted by %s", invite.id, editor_id)
        return invite


class RoomRepository:
    """Repository for rooms and their membership."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_async(self, owner_id: UUID, name: str, invite_token: str) -> Room:
        room = Room(name=name, owner_id=owner_id, invite_token=invite_token, members=[])
        self.session.add(room)
        await self.session.flush()
        logger.info("Created room %s for owner %s", room.id, owner_id)
        return room

    async def get_async(self, room_id: UUID, *, refresh: bool = False) -> Optional[Room]:
        stmt = select(Room).where(Room.id == room_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def get_by_invite_token_async(self, token: str) -> Optional[Room]:
        result = await self.session.execute(select(Room).where(Room.invite_token == token))
        return result.unique().scalar_one_or_none()

    async def list_for_user_async(self, user_id: UUID) -> List[Room]:
        """Rooms the user owns or has joined, newest first, without duplicates."""
        member_rooms = select(RoomMember.room_id).where(RoomMember.user_id == user_id)
        stmt = (
            select(Room)
            .where(or_(Room.owner_id == user_id, Room.id.in_(member_rooms)))
            .order_by(Room.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.unique().scalars().all())

    async def add_member_async(self, room: Room, user_id: UUID, role: str = "editor") -> RoomMember:
        member = RoomMember(room_id=room.id, user_id=user_id, role=role)
        self.session.add(member)
        await self.session.flush()
        logger.info("Added member %s to room %s", user_id, room.id)
        return member

    async def is_member_async(self, room_id: UUID, user_id: UUID) -> bool:
        result = await self.session.execute(
            select(RoomMember.id).where(
                RoomMember.room_id == room_id, RoomMember.user_id == user_id
            )
        )
        return result.first() is not None


class VideoRepository:
    """Repository for videos, their comments and status updates."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_async(self, **fields: Any) -> Video:
        video = Video(**fields)
        self.session.add(video)
        await self.session.flush()
        logger.info("Created video %s (status=%s)", video.id, video.status)
        return video

    async def get_async(self, video_id: UUID, *, refresh: bool = False) -> Optional[Video]:
        stmt = select(Video).where(Video.id == video_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def get_for_update_async(self, video_id: UUID) -> Optional[Video]:
        """Get a video with a FOR UPDATE lock.

        Used by status transitions so a concurrent approve/reject or a
        background publish cannot interleave a read-modify-write.
        """
        stmt = (
            select(Video)
            .where(Video.id == video_id)
            .with_for_update(of=Video)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def find_async(
        self,
        *,
        creator_id: UUID | None = None,
        room_id: UUID | None = None,
        status: VideoStatus | None = None,
        editor_id: UUID | None = None,
        editor_or_unassigned: UUID | None = None,
        exclude_deleted_for: UUID | None = None,
    ) -> List[Video]:
        stmt = select(Video)
        if creator_id is not None:
            stmt = stmt.where(Video.creator_id == creator_id)
        if room_id is not None:
            stmt = stmt.where(Video.room_id == room_id)
        if status is not None:
            stmt = stmt.where(Video.status == status.value)
        if editor_id is not None:
            stmt = stmt.where(Video.editor_id == editor_id)
        if editor_or_unassigned is not None:
            stmt = stmt.where(
                or_(Video.editor_id == editor_or_unassigned, Video.editor_id.is_(None))
            )
        stmt = stmt.order_by(Video.created_at.desc())
        result = await self.session.execute(stmt)
        videos: Sequence[Video] = result.unique().scalars().all()
        if exclude_deleted_for is not None:
            # deleted_for is a JSON list; filter portably in Python.
            videos = [v for v in videos if not v.is_deleted_for(exclude_deleted_for)]
        return list(videos)

    async def update_async(self, video: Video, **kwargs: Any) -> Video:
        for key, value in kwargs.items():
            if not hasattr(video, key):
                raise AttributeError(f"Video has no field '{key}'")
            if key == "status":
                value = self._normalize_status(value)
            setattr(video, key, value)
        if "edit_settings" in kwargs:
            flag_modified(video, "edit_settings")
        await self.session.flush()
        logger.info("Updated video %s: %s", video.id, list(kwargs.keys()))
        return video

    async def add_comment_async(self, video: Video, sender_id: UUID, text: str) -> VideoComment:
        comment = VideoComment(video_id=video.id, sender_id=sender_id, text=text)
        self.session.add(comment)
        await self.session.flush()
        logger.info("Added comment %s to video %s", comment.id, video.id)
        return comment

    async def hide_for_user_async(self, video: Video, user_id: UUID) -> bool:
        """Add the user to ``deleted_for``. Returns False if already hidden."""
        if video.is_deleted_for(user_id):
            return False
        video.deleted_for = [*(video.deleted_for or []), str(user_id)]
        flag_modified(video, "deleted_for")
        await self.session.flush()
        return True

    async def url_in_use_async(self, url: str) -> bool:
        """True if any video row still points at ``url`` as its file, raw file or thumbnail."""
        stmt = (
            select(Video.id)
            .where(
                or_(
                    Video.file_url == url,
                    Video.raw_file_url == url,
                    Video.thumbnail_url == url,
                )
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def delete_async(self, video: Video) -> None:
        await self.session.delete(video)
        await self.session.flush()
        logger.info("Deleted video %s", video.id)

    @staticmethod
    def _normalize_status(value: VideoStatus | str) -> str:
        """Validate and normalize video status to string value."""
        if isinstance(value, VideoStatus):
            return value.value
        if isinstance(value, str):
            try:
                return VideoStatus(value.lower()).value
            except ValueError:
                pass
        raise ValueError(f"Invalid video status: {value}")


class FeedbackRepository:
    """Repository for public testimonials."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_async(
        self,
        rating: int,
        message: str,
        name: str | None = None,
        role: str | None = None,
        avatar_url: str | None = None,
    ) -> Feedback:
        feedback = Feedback(
            name=name or "Anonymous",
            role=role or "Guest",
            rating=rating,
            message=message,
            avatar_url=avatar_url,
        )
        self.session.add(feedback)
        await self.session.flush()
        logger.info("feedback_created", feedback_id=str(feedback.id), rating=rating)
        return feedback

    async def list_async(self, limit: int = 100) -> List[Feedback]:
        result = await self.session.execute(
            select(Feedback).order_by(Feedback.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())


class AuditLogRepository:
    """Repository for AuditLog entries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_async(
        self,
        action: str,
        user_id: Optional[str] = None,
        video_id: Optional[UUID] = None,
        outcome: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        audit_log = AuditLog(
            action=action,
            user_id=user_id,
            video_id=video_id,
            outcome=outcome,
            audit_metadata=metadata or {},
        )
        self.session.add(audit_log)
        await self.session.flush()
        logger.info(
            "audit_log_created",
            action=action,
            user_id=user_id,
            video_id=str(video_id) if video_id else None,
            outcome=outcome,
        )
        return audit_log

    async def get_by_video_id_async(self, video_id: UUID) -> List[AuditLog]:
        result = await self.session.execute(
            select(AuditLog).where(AuditLog.video_id == video_id).order_by(AuditLog.created_at)
        )
        return list(result.scalars().all())
