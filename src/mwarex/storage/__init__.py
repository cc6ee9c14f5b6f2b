"""MwareX storage module - Database models, repositories and upload files."""

from mwarex.storage.database import get_async_session_factory, init_async_db
from mwarex.storage.models import (
    Base,
    EditorInvite,
    Feedback,
    Room,
    RoomMember,
    User,
    UserRole,
    Video,
    VideoComment,
    VideoStatus,
)
from mwarex.storage.repositories import (
    AuditLogRepository,
    FeedbackRepository,
    InviteRepository,
    RoomRepository,
    UserRepository,
    VideoRepository,
)

__all__ = [
    "Base",
    "User",
    "UserRole",
    "EditorInvite",
    "Room",
    "RoomMember",
    "Video",
    "VideoComment",
    "VideoStatus",
    "Feedback",
    "get_async_session_factory",
    "init_async_db",
    "UserRepository",
    "InviteRepository",
    "RoomRepository",
    "VideoRepository",
    "FeedbackRepository",
    "AuditLogRepository",
]
