"""SQLAlchemy database models for MwareX."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import uuid
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import declarative_base, relationship


def _utc_now() -> datetime:
    """Return a tz-naive UTC timestamp for TIMESTAMP WITHOUT TIME ZONE columns.

    Using tz-aware values with asyncpg against TIMESTAMP WITHOUT TIME ZONE columns
    triggers "can't subtract offset-naive and offset-aware datetimes", so we keep
    these fields naive and treat them as UTC by convention.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class GUID(TypeDecorator[UUID]):
    """Platform-independent GUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as String(36).
    This enables unit tests with SQLite while using native UUIDs in production PostgreSQL.
    """

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(String(36))

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        elif dialect.name == "postgresql":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(value)
        else:
            return str(value) if isinstance(value, uuid.UUID) else str(uuid.UUID(value))

    def process_result_value(self, value: Any, dialect: Any) -> UUID | None:
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


Base = declarative_base()

__all__ = [
    "Base",
    "GUID",
    "UserRole",
    "User",
    "InviteStatus",
    "EditorInvite",
    "Room",
    "RoomMember",
    "VideoStatus",
    "ReviewStatus",
    "Video",
    "VideoComment",
    "Feedback",
    "AuditLog",
    "DEFAULT_USER_SETTINGS",
    "DEFAULT_EDIT_SETTINGS",
]


class UserRole(str, Enum):
    CREATOR = "creator"
    EDITOR = "editor"
    ADMIN = "admin"


DEFAULT_USER_SETTINGS: Dict[str, Any] = {
    "ai_auto_suggest": True,
    "ai_thumbnail_gen": True,
    "content_moderation": "medium",
    "default_style": "modern",
    "email_notifications": True,
    "push_notifications": False,
}


class User(Base):
    """Creator, editor or admin account."""

    __tablename__ = "users"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String(128), nullable=False)
    name = Column(String(128), nullable=True)
    role = Column(String(16), nullable=False, default=UserRole.CREATOR.value)
    # Editors are linked to the creator whose invite they accepted.
    creator_id = Column(GUID(), ForeignKey("users.id"), nullable=True, index=True)
    settings = Column(JSON, default=lambda: dict(DEFAULT_USER_SETTINGS))
    youtube_access_token = Column(Text, nullable=True)
    youtube_refresh_token = Column(Text, nullable=True)
    youtube_tokens_updated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utc_now)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)

    @property
    def youtube_connected(self) -> bool:
        return bool(self.youtube_refresh_token)

    def to_dict(self) -> Dict[str, Any]:
        """Public representation (never includes the password hash or tokens)."""
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "creator_id": str(self.creator_id) if self.creator_id else None,
            "settings": {**DEFAULT_USER_SETTINGS, **(self.settings or {})},
            "youtube_connected": self.youtube_connected,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"


class InviteStatus(str, Enum):
    INVITED = "invited"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class EditorInvite(Base):
    """Invite from a creator to an editor email, exchanged once at editor signup."""

    __tablename__ = "editor_invites"
    __table_args__ = (Index("ix_editor_invites_email_status", "editor_email", "status"),)

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    creator_id = Column(GUID(), ForeignKey("users.id"), nullable=False, index=True)
    editor_email = Column(String(320), nullable=False)
    editor_id = Column(GUID(), ForeignKey("users.id"), nullable=True)
    status = Column(String(16), nullable=False, default=InviteStatus.INVITED.value)
    invite_token = Column(String(64), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=_utc_now)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)

    def __repr__(self) -> str:
        return f"<EditorInvite id={self.id} email={self.editor_email} status={self.status}>"


class Room(Base):
    """A creator-owned workspace that editors join via its invite token."""

    __tablename__ = "rooms"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String(128), nullable=False)
    owner_id = Column(GUID(), ForeignKey("users.id"), nullable=False, index=True)
    invite_token = Column(String(64), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=_utc_now)

    owner = relationship("User", lazy="joined")
    members = relationship(
        "RoomMember",
        back_populates="room",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="RoomMember.joined_at",
    )

    def has_access(self, user_id: UUID) -> bool:
        return self.owner_id == user_id or any(m.user_id == user_id for m in self.members)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "owner_id": str(self.owner_id),
            "invite_token": self.invite_token,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Room id={self.id} name={self.name!r}>"


class RoomMember(Base):
    __tablename__ = "room_members"
    __table_args__ = (UniqueConstraint("room_id", "user_id", name="ux_room_members_room_user"),)

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    room_id = Column(GUID(), ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = Column(GUID(), ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(16), nullable=False, default=UserRole.EDITOR.value)
    joined_at = Column(DateTime, default=_utc_now)

    room = relationship("Room", back_populates="members")
    user = relationship("User", lazy="joined")


class VideoStatus(str, Enum):
    """Place of a video in the review-to-publish pipeline."""

    PENDING = "pending"  # Edited cut awaiting creator review
    APPROVED = "approved"  # Approved; publish scheduled
    REJECTED = "rejected"
    PROCESSING = "processing"  # Upload to YouTube in flight
    UPLOADED = "uploaded"
    UPLOAD_FAILED = "upload_failed"
    RAW_UPLOADED = "raw_uploaded"  # Creator footage awaiting editor pickup
    RAW_REJECTED = "raw_rejected"
    EDITING_IN_PROGRESS = "editing_in_progress"


class ReviewStatus(str, Enum):
    """Editor-side review of creator raw footage."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


DEFAULT_EDIT_SETTINGS: Dict[str, float] = {
    "brightness": 100,
    "contrast": 100,
    "saturation": 100,
    "grayscale": 0,
    "sepia": 0,
    "trim_start": 0,
    "trim_end": 0,
}


class Video(Base):
    __tablename__ = "videos"
    __table_args__ = (
        Index("ix_videos_creator_status", "creator_id", "status"),
        Index("ix_videos_room_id", "room_id"),
    )

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    file_url = Column(String(1024), nullable=True)
    raw_file_url = Column(String(1024), nullable=True)
    title = Column(String(256), nullable=True)
    description = Column(Text, nullable=True)
    thumbnail_url = Column(String(1024), nullable=True)
    creator_id = Column(GUID(), ForeignKey("users.id"), nullable=True)
    editor_id = Column(GUID(), ForeignKey("users.id"), nullable=True, index=True)
    room_id = Column(GUID(), ForeignKey("rooms.id"), nullable=True)
    status = Column(String(32), nullable=False, default=VideoStatus.PENDING.value)
    rejection_reason = Column(Text, nullable=True)
    has_raw_video = Column(Boolean, nullable=False, default=False)
    editor_review_status = Column(String(16), nullable=False, default=ReviewStatus.PENDING.value)
    editor_rejection_reason = Column(Text, nullable=True)
    youtube_id = Column(String(64), nullable=True)
    publish_error = Column(Text, nullable=True)
    edit_settings = Column(JSON, default=lambda: dict(DEFAULT_EDIT_SETTINGS))
    deleted_for = Column(JSON, default=list)
    created_at = Column(DateTime, default=_utc_now, index=True)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)

    creator = relationship("User", foreign_keys=[creator_id], lazy="joined")
    editor = relationship("User", foreign_keys=[editor_id], lazy="joined")
    comments = relationship(
        "VideoComment",
        back_populates="video",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="VideoComment.created_at",
    )

    def is_deleted_for(self, user_id: UUID) -> bool:
        return str(user_id) in (self.deleted_for or [])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "file_url": self.file_url,
            "raw_file_url": self.raw_file_url,
            "title": self.title,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "creator_id": str(self.creator_id) if self.creator_id else None,
            "editor_id": str(self.editor_id) if self.editor_id else None,
            "room_id": str(self.room_id) if self.room_id else None,
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "has_raw_video": self.has_raw_video,
            "editor_review_status": self.editor_review_status,
            "editor_rejection_reason": self.editor_rejection_reason,
            "youtube_id": self.youtube_id,
            "publish_error": self.publish_error,
            "edit_settings": {**DEFAULT_EDIT_SETTINGS, **(self.edit_settings or {})},
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Video id={self.id} status={self.status}>"


class VideoComment(Base):
    __tablename__ = "video_comments"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    video_id = Column(GUID(), ForeignKey("videos.id"), nullable=False, index=True)
    sender_id = Column(GUID(), ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=_utc_now)

    video = relationship("Video", back_populates="comments")
    sender = relationship("User", lazy="joined")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "sender_id": str(self.sender_id),
            "sender_name": self.sender.name if self.sender else None,
            "sender_email": self.sender.email if self.sender else None,
            "text": self.text,
            "created_at": _iso(self.created_at),
        }


class Feedback(Base):
    """Public testimonial left on the landing page."""

    __tablename__ = "feedback"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String(128), nullable=False, default="Anonymous")
    role = Column(String(128), nullable=False, default="Guest")
    rating = Column(Integer, nullable=False)  # 1..5
    message = Column(Text, nullable=False)
    avatar_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=_utc_now, index=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "role": self.role,
            "rating": self.rating,
            "message": self.message,
            "avatar_url": self.avatar_url,
            "created_at": _iso(self.created_at),
        }


class AuditLog(Base):
    """Decision audit trail.

    Records approvals, rejections, publish outcomes and membership changes.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_user_id", "user_id"),
        Index("ix_audit_logs_created_at", "created_at"),
    )

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=True)
    video_id = Column(GUID(), nullable=True, index=True)
    action = Column(String(64), nullable=False)
    outcome = Column(String(32), nullable=True)  # "success", "failure"
    audit_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "video_id": str(self.video_id) if self.video_id else None,
            "action": self.action,
            "outcome": self.outcome,
            "metadata": self.audit_metadata,
            "created_at": _iso(self.created_at),
        }
