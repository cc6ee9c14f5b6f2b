"""Video review workflow: uploads, visibility, approval and publishing hand-off."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.errors import NotFoundError, PermissionDeniedError, ValidationError
from mwarex.config import settings
from mwarex.observability.logging import get_logger
from mwarex.storage.files import StoredFile
from mwarex.storage.models import (
    DEFAULT_EDIT_SETTINGS,
    ReviewStatus,
    Room,
    User,
    UserRole,
    Video,
    VideoStatus,
)
from mwarex.storage.repositories import RoomRepository, UserRepository, VideoRepository
from mwarex.workflows.video_states import VideoAction, initial_status, transition

logger = get_logger(__name__)

__all__ = [
    "upload_video",
    "can_access",
    "get_video_for",
    "list_videos",
    "list_pending",
    "approve_video",
    "reject_video",
    "review_raw_video",
    "upload_edited_video",
    "video_detail",
    "update_thumbnail",
    "validate_edit_settings",
    "update_edit_settings",
    "add_comment",
    "delete_for_everyone",
    "delete_for_me",
    "youtube_status",
    "store_youtube_tokens",
]

_PERCENT_RANGES = {
    "brightness": (0, 200),
    "contrast": (0, 200),
    "saturation": (0, 200),
    "grayscale": (0, 100),
    "sepia": (0, 100),
}


def _is_editor(user: User) -> bool:
    return user.role == UserRole.EDITOR.value


async def _room_or_404(session: AsyncSession, room_id: UUID) -> Room:
    room = await RoomRepository(session).get_async(room_id)
    if room is None:
        raise NotFoundError("Room not found")
    return room


async def upload_video(
    session: AsyncSession,
    user: User,
    stored: StoredFile,
    *,
    raw: bool = False,
    title: str | None = None,
    description: str | None = None,
    creator_id: UUID | None = None,
    editor_id: UUID | None = None,
    room_id: UUID | None = None,
    thumbnail_url: str | None = None,
) -> Video:
    """Create a video from an uploaded file.

    The creator is the room owner when a room is given, else the creator named
    in the request, else the uploader. An editor uploading becomes the
    video's editor.
    """
    resolved_creator = creator_id or user.id
    if room_id is not None:
        room = await _room_or_404(session, room_id)
        if not room.has_access(user.id):
            raise PermissionDeniedError("You are not a member of this room")
        resolved_creator = room.owner_id

    resolved_editor = user.id if _is_editor(user) else editor_id
    users = UserRepository(session)
    if resolved_creator != user.id and await users.get_async(resolved_creator) is None:
        raise NotFoundError("Creator not found")
    if resolved_editor not in (None, user.id) and await users.get_async(resolved_editor) is None:
        raise NotFoundError("Editor not found")

    fields: Dict[str, Any] = {
        "file_url": stored.url,
        "title": title,
        "description": description,
        "creator_id": resolved_creator,
        "editor_id": resolved_editor,
        "room_id": room_id,
        "thumbnail_url": thumbnail_url,
        "status": initial_status(user.role, raw=raw).value,
    }
    if raw:
        fields.update(
            raw_file_url=stored.url,
            has_raw_video=True,
            editor_review_status=(
                ReviewStatus.ACCEPTED.value if _is_editor(user) else ReviewStatus.PENDING.value
            ),
        )

    repo = VideoRepository(session)
    video = await repo.create_async(**fields)
    logger.info(
        "video_uploaded",
        video_id=str(video.id),
        raw=raw,
        status=video.status,
        uploader_id=str(user.id),
    )
    return await repo.get_async(video.id, refresh=True) or video


async def can_access(session: AsyncSession, video: Video, user: User) -> bool:
    """Creator, assigned editor, the creator's linked editor, or room owner/member."""
    if user.id in (video.creator_id, video.editor_id):
        return True
    if _is_editor(user) and video.creator_id is not None and user.creator_id == video.creator_id:
        return True
    if video.room_id is not None:
        room = await RoomRepository(session).get_async(video.room_id)
        if room is not None and room.has_access(user.id):
            return True
    return False


async def get_video_for(
    session: AsyncSession, video_id: UUID, user: User, *, for_update: bool = False
) -> Video:
    repo = VideoRepository(session)
    video = await (repo.get_for_update_async(video_id) if for_update else repo.get_async(video_id))
    if video is None:
        raise NotFoundError("Video not found")
    if not await can_access(session, video, user):
        raise PermissionDeniedError("You do not have access to this video")
    return video


async def list_videos(
    session: AsyncSession, user: User, room_id: UUID | None = None
) -> List[Video]:
    repo = VideoRepository(session)
    if room_id is not None:
        room = await _room_or_404(session, room_id)
        if not room.has_access(user.id):
            raise PermissionDeniedError("Access denied")
        if _is_editor(user):
            return await repo.find_async(
                room_id=room_id, editor_or_unassigned=user.id, exclude_deleted_for=user.id
            )
        if room.owner_id == user.id:
            return await repo.find_async(room_id=room_id, exclude_deleted_for=user.id)
        return await repo.find_async(
            room_id=room_id, creator_id=user.id, exclude_deleted_for=user.id
        )

    if _is_editor(user):
        if user.creator_id is None:
            return []
        return await repo.find_async(
            creator_id=user.creator_id,
            editor_or_unassigned=user.id,
            exclude_deleted_for=user.id,
        )
    return await repo.find_async(creator_id=user.id, exclude_deleted_for=user.id)


async def list_pending(session: AsyncSession, user: User) -> List[Video]:
    repo = VideoRepository(session)
    if _is_editor(user):
        if user.creator_id is None:
            return []
        return await repo.find_async(
            creator_id=user.creator_id,
            editor_id=user.id,
            status=VideoStatus.PENDING,
            exclude_deleted_for=user.id,
        )
    return await repo.find_async(
        creator_id=user.id, status=VideoStatus.PENDING, exclude_deleted_for=user.id
    )


async def _ensure_decision_authority(session: AsyncSession, video: Video, user: User) -> None:
    if video.creator_id == user.id:
        return
    if video.room_id is not None:
        room = await RoomRepository(session).get_async(video.room_id)
        if room is not None and room.owner_id == user.id:
            return
    raise PermissionDeniedError("Only the video's creator can approve or reject it")


async def approve_video(session: AsyncSession, video_id: UUID, user: User) -> Video:
    """Approve a pending video; the caller schedules publishing after commit."""
    video = await get_video_for(session, video_id, user, for_update=True)
    await _ensure_decision_authority(session, video, user)
    status = transition(video.status, VideoAction.APPROVE)

    creator = video.creator or user
    if not (creator.youtube_refresh_token or settings.youtube_refresh_token):
        raise ValidationError(
            "YouTube account not connected. Please go to Settings and connect your channel."
        )

    await VideoRepository(session).update_async(video, status=status, publish_error=None)
    logger.info("video_approved", video_id=str(video.id), user_id=str(user.id))
    return video


async def reject_video(
    session: AsyncSession, video_id: UUID, user: User, reason: str | None = None
) -> Video:
    video = await get_video_for(session, video_id, user, for_update=True)
    await _ensure_decision_authority(session, video, user)

    status = transition(video.status, VideoAction.REJECT)
    updates: Dict[str, Any] = {"status": status}
    if reason:
        updates["rejection_reason"] = reason
    await VideoRepository(session).update_async(video, **updates)
    logger.info("video_rejected", video_id=str(video.id), user_id=str(user.id))
    return video


async def review_raw_video(
    session: AsyncSession,
    video_id: UUID,
    user: User,
    action: Literal["accept", "reject"],
    reason: str | None = None,
) -> Video:
    """Editor picks up (or turns down) raw footage uploaded by a creator."""
    if not _is_editor(user):
        raise PermissionDeniedError("Only editors can review raw footage")
    video = await get_video_for(session, video_id, user, for_update=True)
    repo = VideoRepository(session)

    if action == "accept":
        updates: Dict[str, Any] = {
            "status": transition(video.status, VideoAction.ACCEPT_RAW),
            "editor_review_status": ReviewStatus.ACCEPTED.value,
        }
        if video.editor_id is None:
            updates["editor_id"] = user.id
    elif action == "reject":
        updates = {
            "status": transition(video.status, VideoAction.REJECT_RAW),
            "editor_review_status": ReviewStatus.REJECTED.value,
            "editor_rejection_reason": reason,
        }
    else:
        raise ValidationError("action must be 'accept' or 'reject'")

    await repo.update_async(video, **updates)
    logger.info("raw_video_reviewed", video_id=str(video.id), action=action)
    return await repo.get_async(video.id, refresh=True) or video


async def upload_edited_video(
    session: AsyncSession,
    video_id: UUID,
    user: User,
    stored: StoredFile,
    *,
    title: str | None = None,
    description: str | None = None,
    thumbnail_url: str | None = None,
) -> Video:
    video = await get_video_for(session, video_id, user, for_update=True)
    updates: Dict[str, Any] = {
        "status": transition(video.status, VideoAction.SUBMIT_EDIT),
        "file_url": stored.url,
        "rejection_reason": None,
        "editor_rejection_reason": None,
        "editor_review_status": ReviewStatus.ACCEPTED.value,
        "publish_error": None,
    }
    if title:
        updates["title"] = title
    if description:
        updates["description"] = description
    if thumbnail_url:
        updates["thumbnail_url"] = thumbnail_url
    if _is_editor(user) and video.editor_id is None:
        updates["editor_id"] = user.id

    repo = VideoRepository(session)
    await repo.update_async(video, **updates)
    logger.info("edited_video_uploaded", video_id=str(video.id), user_id=str(user.id))
    return await repo.get_async(video.id, refresh=True) or video


def video_detail(video: Video) -> Dict[str, Any]:
    payload = video.to_dict()
    payload["creator_name"] = video.creator.name if video.creator else None
    payload["creator_email"] = video.creator.email if video.creator else None
    payload["editor_name"] = video.editor.name if video.editor else None
    payload["editor_email"] = video.editor.email if video.editor else None
    payload["comments"] = [c.to_dict() for c in video.comments]
    return payload


async def update_thumbnail(
    session: AsyncSession, video_id: UUID, user: User, thumbnail_url: str
) -> tuple[Video, str | None]:
    """Point the video at a new thumbnail; returns the replaced URL for cleanup."""
    video = await get_video_for(session, video_id, user, for_update=True)
    previous = video.thumbnail_url
    repo = VideoRepository(session)
    await repo.update_async(video, thumbnail_url=thumbnail_url)
    if not previous or previous == thumbnail_url or await repo.url_in_use_async(previous):
        return video, None
    return video, previous


def validate_edit_settings(values: Dict[str, Any]) -> Dict[str, float]:
    """Merge onto defaults and check ranges; raises ValidationError."""
    unknown = set(values) - set(DEFAULT_EDIT_SETTINGS)
    if unknown:
        raise ValidationError(f"Unknown edit settings: {', '.join(sorted(unknown))}")

    merged: Dict[str, float] = dict(DEFAULT_EDIT_SETTINGS)
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{key} must be a number")
        merged[key] = value

    for key, (low, high) in _PERCENT_RANGES.items():
        if not low <= merged[key] <= high:
            raise ValidationError(f"{key} must be between {low} and {high}")
    if merged["trim_start"] < 0 or merged["trim_end"] < 0:
        raise ValidationError("trim values cannot be negative")
    if merged["trim_end"] and merged["trim_end"] < merged["trim_start"]:
        raise ValidationError("trim_end must not be before trim_start")
    return merged


async def update_edit_settings(
    session: AsyncSession, video_id: UUID, user: User, values: Dict[str, Any]
) -> Video:
    video = await get_video_for(session, video_id, user, for_update=True)
    current = {**DEFAULT_EDIT_SETTINGS, **(video.edit_settings or {})}
    merged = validate_edit_settings({**current, **values})
    await VideoRepository(session).update_async(video, edit_settings=merged)
    return video


async def add_comment(
    session: AsyncSession, video_id: UUID, user: User, text: str
) -> List[Dict[str, Any]]:
    """Add a comment and return the full thread, oldest first."""
    body = (text or "").strip()
    if not body:
        raise ValidationError("Comment text is required")
    video = await get_video_for(session, video_id, user)
    repo = VideoRepository(session)
    await repo.add_comment_async(video, user.id, body)
    refreshed = await repo.get_async(video.id, refresh=True)
    return [c.to_dict() for c in (refreshed or video).comments]


async def delete_for_everyone(session: AsyncSession, video_id: UUID, user: User) -> set[str]:
    """Delete the video row; returns stored file URLs to remove once committed."""
    repo = VideoRepository(session)
    video = await repo.get_for_update_async(video_id)
    if video is None:
        raise NotFoundError("Video not found")
    if video.creator_id != user.id:
        raise PermissionDeniedError("Only the creator can delete this video for everyone")
    urls = {u for u in (video.file_url, video.raw_file_url, video.thumbnail_url) if u}
    await repo.delete_async(video)
    return {u for u in urls if not await repo.url_in_use_async(u)}


async def delete_for_me(session: AsyncSession, video_id: UUID, user: User) -> None:
    video = await get_video_for(session, video_id, user, for_update=True)
    hidden = await VideoRepository(session).hide_for_user_async(video, user.id)
    if hidden:
        logger.info("video_hidden", video_id=str(video.id), user_id=str(user.id))


def youtube_status(user: User) -> Dict[str, Any]:
    updated = user.youtube_tokens_updated_at
    return {
        "connected": user.youtube_connected,
        "updated_at": updated.isoformat() if updated else None,
    }


async def store_youtube_tokens(
    session: AsyncSession,
    user: User,
    access_token: Optional[str],
    refresh_token: Optional[str],
) -> User:
    if not access_token and not refresh_token:
        raise ValidationError("access_token or refresh_token is required")
    return await UserRepository(session).update_youtube_tokens_async(
        user, access_token=access_token, refresh_token=refresh_token
    )
