"""Background publish job: approved -> processing -> uploaded | upload_failed."""

from __future__ import annotations

import tempfile
from contextlib import AsyncExitStack, asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional
from urllib.parse import urlparse
from uuid import UUID

import httpx

from mwarex.api.errors import DomainError, InvalidTransitionError, PublishError
from mwarex.config import settings
from mwarex.observability.audit import AuditAction, log_audit_event_async
from mwarex.observability.logging import get_logger
from mwarex.publishing.oauth import build_credentials, refresh_credentials_async
from mwarex.publishing.youtube import (
    FakeYouTubePublisher,
    PublishRequest,
    PublishResult,
    get_publisher,
)
from mwarex.storage.database import get_async_session_factory
from mwarex.storage.files import resolve_local_path
from mwarex.storage.models import User, Video
from mwarex.storage.repositories import UserRepository, VideoRepository
from mwarex.workflows.video_states import VideoAction, transition

logger = get_logger(__name__)

__all__ = ["publish_video_async", "download_to_temp_async"]

DOWNLOAD_TIMEOUT_SECONDS = 300.0


@asynccontextmanager
async def download_to_temp_async(
    url: str, *, client: httpx.AsyncClient | None = None
) -> AsyncIterator[Path]:
    """Stream a remote file to a temporary path that is removed afterwards."""
    suffix = Path(urlparse(url).path).suffix or ".bin"
    tmp = tempfile.NamedTemporaryFile(prefix="mwarex_", suffix=suffix, delete=False)
    path = Path(tmp.name)
    try:
        async with _client_scope(client) as http:
            async with http.stream("GET", url, follow_redirects=True) as response:
                if response.status_code >= 400:
                    raise PublishError(f"Could not download {url}: HTTP {response.status_code}")
                async for chunk in response.aiter_bytes():
                    tmp.write(chunk)
        tmp.close()
        yield path
    finally:
        tmp.close()
        path.unlink(missing_ok=True)


@asynccontextmanager
async def _client_scope(client: httpx.AsyncClient | None) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT_SECONDS) as owned:
        yield owned


@asynccontextmanager
async def _local_file(url: Optional[str]) -> AsyncIterator[Optional[Path]]:
    """Resolve an uploaded file to a local path, downloading remote URLs first."""
    if not url:
        yield None
        return
    local = resolve_local_path(url)
    if local is not None:
        yield local
        return
    if url.startswith(("http://", "https://")):
        async with download_to_temp_async(url) as path:
            yield path
        return
    raise PublishError(f"Video file is not available: {url}")


async def _enter_thumbnail(stack: AsyncExitStack, video: Video) -> Optional[Path]:
    """Best-effort thumbnail; an unreachable thumbnail never blocks the upload."""
    if not video.thumbnail_url:
        return None
    try:
        return await stack.enter_async_context(_local_file(video.thumbnail_url))
    except (PublishError, httpx.HTTPError, OSError) as exc:
        logger.warning("thumbnail_unavailable", video_id=str(video.id), error=str(exc))
        return None


async def _credentials_for(creator: User | None, users: UserRepository):
    if creator is None:
        raise PublishError("Video has no creator to publish for")
    credentials = build_credentials(creator.youtube_access_token, creator.youtube_refresh_token)
    if await refresh_credentials_async(credentials):
        await users.update_youtube_tokens_async(
            creator, access_token=credentials.token, refresh_token=None
        )
        await users.session.commit()
    return credentials


async def _upload(video: Video, users: UserRepository) -> PublishResult:
    publisher = get_publisher()
    title = video.title or "Untitled"
    description = video.description or ""

    if isinstance(publisher, FakeYouTubePublisher):
        request = PublishRequest(
            key=str(video.id),
            video_path=Path(video.file_url or ""),
            title=title,
            description=description,
            thumbnail_path=Path(video.thumbnail_url) if video.thumbnail_url else None,
        )
        return await publisher.publish_async(request, None)

    creator = await users.get_async(video.creator_id) if video.creator_id else None
    credentials = await _credentials_for(creator, users)
    async with AsyncExitStack() as stack:
        video_path = await stack.enter_async_context(_local_file(video.file_url))
        if video_path is None:
            raise PublishError("Video has no file to publish")
        thumb_path = await _enter_thumbnail(stack, video)
        request = PublishRequest(
            key=str(video.id),
            video_path=video_path,
            title=title,
            description=description,
            thumbnail_path=thumb_path,
        )
        return await publisher.publish_async(request, credentials)


async def publish_video_async(video_id: UUID, actor_id: str | None = None) -> None:
    """Publish an approved video and record the outcome on the row.

    Runs after the approving request has committed, in its own session. Never
    raises: failures end in ``upload_failed`` with ``publish_error`` set.
    """
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        videos = VideoRepository(session)
        users = UserRepository(session)

        video = await videos.get_for_update_async(video_id)
        if video is None:
            logger.warning("publish_skipped_missing_video", video_id=str(video_id))
            return
        try:
            processing = transition(video.status, VideoAction.START_PUBLISH)
        except InvalidTransitionError as exc:
            logger.warning("publish_skipped", video_id=str(video_id), reason=str(exc))
            return
        await videos.update_async(video, status=processing, publish_error=None)
        await session.commit()
        logger.info("publish_started", video_id=str(video_id))

        try:
            result = await _upload(video, users)
        except Exception as exc:
            error = str(exc) if isinstance(exc, DomainError) else f"{type(exc).__name__}: {exc}"
            if not isinstance(exc, DomainError):
                logger.exception("publish_crashed", video_id=str(video_id))
            await session.rollback()
            await _mark_failed(videos, video_id, error)
            await session.commit()
            await log_audit_event_async(
                AuditAction.VIDEO_PUBLISH_FAILED,
                user_id=actor_id,
                video_id=video_id,
                outcome="failure",
                metadata={"error": error, "provider": settings.youtube_provider},
            )
            return

        video = await videos.get_for_update_async(video_id)
        if video is None:
            logger.warning("publish_video_deleted_during_upload", video_id=str(video_id))
            return
        await videos.update_async(
            video,
            status=transition(video.status, VideoAction.PUBLISH_SUCCEEDED),
            youtube_id=result.youtube_id,
            publish_error=None,
        )
        await session.commit()

    logger.info("publish_succeeded", video_id=str(video_id), youtube_id=result.youtube_id)
    await log_audit_event_async(
        AuditAction.VIDEO_PUBLISHED,
        user_id=actor_id,
        video_id=video_id,
        outcome="success",
        metadata={"youtube_id": result.youtube_id, "thumbnail_set": result.thumbnail_set},
    )


async def _mark_failed(videos: VideoRepository, video_id: UUID, error: str) -> None:
    video = await videos.get_for_update_async(video_id)
    if video is None:
        return
    try:
        failed = transition(video.status, VideoAction.PUBLISH_FAILED)
    except InvalidTransitionError:
        logger.warning("publish_failure_not_recorded", video_id=str(video_id), status=video.status)
        return
    await videos.update_async(video, status=failed, publish_error=error[:2000])
    logger.warning("publish_failed", video_id=str(video_id), error=error)
