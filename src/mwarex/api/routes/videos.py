"""Video endpoints: uploads, review decisions, comments and YouTube connection."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.dependencies import get_current_user
from mwarex.api.dependencies_async import get_async_db_session
from mwarex.api.errors import ValidationError
from mwarex.api.schemas import (
    CommentRequest,
    CommentResponse,
    EditSettingsRequest,
    ErrorResponse,
    MessageResponse,
    RawReviewRequest,
    RejectRequest,
    VideoDetailResponse,
    VideoResponse,
    VideoUploadResponse,
    YouTubeStatusResponse,
    YouTubeTokensRequest,
)
from mwarex.config import settings
from mwarex.observability.audit import AuditAction, log_audit_event_async
from mwarex.observability.logging import get_logger
from mwarex.services import videos
from mwarex.storage.files import check_external_url, delete_stored_file, save_upload_async
from mwarex.storage.models import User
from mwarex.workflows.publish import publish_video_async

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/videos", tags=["Videos"])

_DECISION_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _optional_uuid(value: Optional[str], field: str) -> Optional[UUID]:
    """Multipart forms send blank strings for unset ids."""
    if value is None or not value.strip():
        return None
    try:
        return UUID(value.strip())
    except ValueError as exc:
        raise ValidationError(f"{field} must be a UUID") from exc


def _discard(saved: list[str]) -> None:
    """Remove files written by a request that did not commit."""
    for url in saved:
        delete_stored_file(url)


@router.post("/upload", response_model=VideoUploadResponse, status_code=201)
async def upload_video(
    video: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    creator_id: Optional[str] = Form(None),
    editor_id: Optional[str] = Form(None),
    room_id: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> VideoUploadResponse:
    """Upload an edited cut for review."""
    ids = {
        "creator_id": _optional_uuid(creator_id, "creator_id"),
        "editor_id": _optional_uuid(editor_id, "editor_id"),
        "room_id": _optional_uuid(room_id, "room_id"),
    }
    stored = await save_upload_async(video, kind="video")
    try:
        created = await videos.upload_video(
            session, user, stored, title=title, description=description, **ids
        )
        await session.commit()
    except Exception:
        _discard([stored.url])
        raise
    return VideoUploadResponse(message="uploaded", video=VideoResponse(**created.to_dict()))


@router.post("/upload-raw", response_model=VideoUploadResponse, status_code=201)
async def upload_raw_video(
    video: UploadFile = File(...),
    thumbnail: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    creator_id: Optional[str] = Form(None),
    editor_id: Optional[str] = Form(None),
    room_id: Optional[str] = Form(None),
    thumbnail_url: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> VideoUploadResponse:
    """Upload raw footage for an editor to work on."""
    ids = {
        "creator_id": _optional_uuid(creator_id, "creator_id"),
        "editor_id": _optional_uuid(editor_id, "editor_id"),
        "room_id": _optional_uuid(room_id, "room_id"),
    }
    thumbnail_url = check_external_url(thumbnail_url)
    saved: list[str] = []
    try:
        stored = await save_upload_async(video, kind="video")
        saved.append(stored.url)
        if thumbnail is not None and thumbnail.filename:
            thumbnail_url = (await save_upload_async(thumbnail, kind="thumbnail")).url
            saved.append(thumbnail_url)
        created = await videos.upload_video(
            session,
            user,
            stored,
            raw=True,
            title=title,
            description=description,
            thumbnail_url=thumbnail_url,
            **ids,
        )
        await session.commit()
    except Exception:
        _discard(saved)
        raise
    return VideoUploadResponse(
        message="raw video uploaded", video=VideoResponse(**created.to_dict())
    )


@router.get("", response_model=list[VideoResponse])
async def list_videos(
    room_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> list[VideoResponse]:
    found = await videos.list_videos(session, user, room_id)
    return [VideoResponse(**v.to_dict()) for v in found]


@router.get("/pending", response_model=list[VideoResponse])
async def list_pending(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> list[VideoResponse]:
    return [VideoResponse(**v.to_dict()) for v in await videos.list_pending(session, user)]


@router.get("/youtube-status", response_model=YouTubeStatusResponse)
async def youtube_status(user: User = Depends(get_current_user)) -> YouTubeStatusResponse:
    return YouTubeStatusResponse(**videos.youtube_status(user))


@router.post("/store-youtube-tokens", response_model=MessageResponse)
async def store_youtube_tokens(
    body: YouTubeTokensRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> MessageResponse:
    await videos.store_youtube_tokens(session, user, body.access_token, body.refresh_token)
    await session.commit()
    return MessageResponse(message="YouTube tokens stored successfully")


@router.get(
    "/{video_id}",
    response_model=VideoDetailResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_video(
    video_id: UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> VideoDetailResponse:
    video = await videos.get_video_for(session, video_id, user)
    return VideoDetailResponse(**videos.video_detail(video))


@router.post("/{video_id}/approve", response_model=MessageResponse, responses=_DECISION_ERRORS)
async def approve_video(
    video_id: UUID,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> MessageResponse:
    """Approve a video and publish it to YouTube in the background.

    The approval is committed before the publish task is scheduled so the task's
    own session sees the ``approved`` row.
    """
    video = await videos.approve_video(session, video_id, user)
    await session.commit()

    await log_audit_event_async(
        AuditAction.VIDEO_APPROVED,
        user_id=str(user.id),
        video_id=video.id,
        outcome="success",
    )
    if settings.disable_background_publish:
        logger.info("background_publish_disabled", video_id=str(video.id))
        return MessageResponse(message="Video approved.")

    background_tasks.add_task(publish_video_async, video.id, str(user.id))
    return MessageResponse(message="Video approved. Uploading to YouTube in background...")


@router.post("/{video_id}/reject", response_model=MessageResponse, responses=_DECISION_ERRORS)
async def reject_video(
    video_id: UUID,
    body: RejectRequest | None = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> MessageResponse:
    reason = body.reason if body else None
    video = await videos.reject_video(session, video_id, user, reason)
    await session.commit()
    await log_audit_event_async(
        AuditAction.VIDEO_REJECTED,
        user_id=str(user.id),
        video_id=video.id,
        outcome="success",
        metadata={"reason": reason} if reason else None,
    )
    return MessageResponse(message="Video Rejected")


@router.post("/{video_id}/raw-review", response_model=VideoResponse, responses=_DECISION_ERRORS)
async def review_raw_video(
    video_id: UUID,
    body: RawReviewRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> VideoResponse:
    video = await videos.review_raw_video(session, video_id, user, body.action, body.reason)
    await session.commit()
    return VideoResponse(**video.to_dict())


@router.post(
    "/{video_id}/upload-edit", response_model=VideoUploadResponse, responses=_DECISION_ERRORS
)
async def upload_edited_video(
    video_id: UUID,
    video: UploadFile = File(...),
    thumbnail: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail_url: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> VideoUploadResponse:
    # Check access before accepting a potentially large file.
    await videos.get_video_for(session, video_id, user)
    thumbnail_url = check_external_url(thumbnail_url)
    saved: list[str] = []
    try:
        stored = await save_upload_async(video, kind="video")
        saved.append(stored.url)
        if thumbnail is not None and thumbnail.filename:
            thumbnail_url = (await save_upload_async(thumbnail, kind="thumbnail")).url
            saved.append(thumbnail_url)
        updated = await videos.upload_edited_video(
            session,
            video_id,
            user,
            stored,
            title=title,
            description=description,
            thumbnail_url=thumbnail_url,
        )
        await session.commit()
    except Exception:
        _discard(saved)
        raise
    return VideoUploadResponse(
        message="edited video uploaded", video=VideoResponse(**updated.to_dict())
    )


@router.put("/{video_id}/thumbnail", response_model=VideoResponse, responses=_DECISION_ERRORS)
async def update_thumbnail(
    video_id: UUID,
    thumbnail: Optional[UploadFile] = File(None),
    thumbnail_url: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> VideoResponse:
    await videos.get_video_for(session, video_id, user)
    saved: list[str] = []
    if thumbnail is not None and thumbnail.filename:
        thumbnail_url = (await save_upload_async(thumbnail, kind="thumbnail")).url
        saved.append(thumbnail_url)
    else:
        thumbnail_url = check_external_url(thumbnail_url)
    if not thumbnail_url:
        raise ValidationError("A thumbnail file or thumbnail_url is required")
    try:
        video, replaced = await videos.update_thumbnail(session, video_id, user, thumbnail_url)
        await session.commit()
    except Exception:
        _discard(saved)
        raise
    if replaced:
        delete_stored_file(replaced)
    return VideoResponse(**video.to_dict())


@router.put(
    "/{video_id}/edit-settings", response_model=VideoResponse, responses=_DECISION_ERRORS
)
async def update_edit_settings(
    video_id: UUID,
    body: EditSettingsRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> VideoResponse:
    video = await videos.update_edit_settings(
        session, video_id, user, body.model_dump(exclude_none=True)
    )
    await session.commit()
    return VideoResponse(**video.to_dict())


@router.post(
    "/{video_id}/comments",
    response_model=list[CommentResponse],
    status_code=201,
    responses=_DECISION_ERRORS,
)
async def add_comment(
    video_id: UUID,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> list[CommentResponse]:
    comments = await videos.add_comment(session, video_id, user, body.text)
    await session.commit()
    return [CommentResponse(**c) for c in comments]


@router.delete("/{video_id}", response_model=MessageResponse, responses=_DECISION_ERRORS)
async def delete_for_everyone(
    video_id: UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> MessageResponse:
    stored_urls = await videos.delete_for_everyone(session, video_id, user)
    await session.commit()
    for url in stored_urls:
        delete_stored_file(url)
    return MessageResponse(message="Video deleted for everyone")


@router.post(
    "/{video_id}/delete-for-me", response_model=MessageResponse, responses=_DECISION_ERRORS
)
async def delete_for_me(
    video_id: UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_db_session),
) -> MessageResponse:
    await videos.delete_for_me(session, video_id, user)
    await session.commit()
    return MessageResponse(message="Video deleted for me")


__all__ = ["router"]
