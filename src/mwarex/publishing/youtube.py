"""YouTube Data API publisher.

``YouTubePublisher`` performs a resumable ``videos.insert`` from a local file;
``FakeYouTubePublisher`` returns deterministic ids for dev and tests.
"""

from __future__ import annotations

import asyncio
import hashlib
import random
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from mwarex.api.errors import PublishError
from mwarex.config import effective_youtube_provider, settings
from mwarex.observability.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "PublishRequest",
    "PublishResult",
    "Publisher",
    "YouTubePublisher",
    "FakeYouTubePublisher",
    "get_publisher",
]

YOUTUBE_API_SERVICE_NAME = "youtube"
YOUTUBE_API_VERSION = "v3"
RETRYABLE_STATUS_CODES = (500, 502, 503, 504)
# Dropped connections and timeouts between chunks.
RETRYABLE_EXCEPTIONS = (httplib2.HttpLib2Error, OSError)
FAKE_HISTORY_LIMIT = 100
DEFAULT_CATEGORY_ID = "22"  # People & Blogs


@dataclass(frozen=True)
class PublishRequest:
    key: str
    video_path: Path
    title: str
    description: str = ""
    thumbnail_path: Optional[Path] = None


@dataclass(frozen=True)
class PublishResult:
    youtube_id: str
    thumbnail_set: bool = False

    @property
    def watch_url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.youtube_id}"


class Publisher(Protocol):
    async def publish_async(
        self, request: PublishRequest, credentials: Credentials | None
    ) -> PublishResult: ...


class YouTubePublisher:
    """Upload videos with the creator's OAuth credentials."""

    def __init__(
        self,
        *,
        privacy_status: str | None = None,
        chunk_bytes: int | None = None,
        max_retries: int | None = None,
        backoff_seconds: float = 1.0,
    ):
        self.privacy_status = privacy_status or settings.youtube_privacy_status
        self.chunk_bytes = chunk_bytes or settings.youtube_upload_chunk_bytes
        self.max_retries = settings.youtube_max_retries if max_retries is None else max_retries
        self.backoff_seconds = backoff_seconds

    async def publish_async(
        self, request: PublishRequest, credentials: Credentials | None
    ) -> PublishResult:
        if credentials is None:
            raise PublishError("YouTube credentials are required")
        return await asyncio.to_thread(self.publish, request, credentials)

    def publish(self, request: PublishRequest, credentials: Credentials) -> PublishResult:
        if not request.video_path.is_file():
            raise PublishError(f"Video file not found: {request.video_path.name}")

        service = build(
            YOUTUBE_API_SERVICE_NAME,
            YOUTUBE_API_VERSION,
            credentials=credentials,
            cache_discovery=False,
        )
        body = {
            "snippet": {
                "title": (request.title or "Untitled")[:100],
                "description": (request.description or "")[:5000],
                "categoryId": DEFAULT_CATEGORY_ID,
            },
            "status": {"privacyStatus": self.privacy_status, "selfDeclaredMadeForKids": False},
        }
        media = MediaFileUpload(
            str(request.video_path),
            chunksize=self.chunk_bytes,
            resumable=True,
        )
        insert = service.videos().insert(part="snippet,status", body=body, media_body=media)

        youtube_id = self._execute_upload(insert, key=request.key)
        logger.info("youtube_upload_complete", key=request.key, youtube_id=youtube_id)

        thumbnail_set = False
        if request.thumbnail_path is not None:
            thumbnail_set = self._set_thumbnail(service, youtube_id, request.thumbnail_path)
        return PublishResult(youtube_id=youtube_id, thumbnail_set=thumbnail_set)

    def _execute_upload(self, insert: Any, *, key: str) -> str:
        response = None
        retries = 0
        last_progress = 0
        while response is None:
            try:
                status, response = insert.next_chunk()
                if status:
                    progress = int(status.progress() * 100)
                    if progress >= last_progress + 10:
                        logger.info("youtube_upload_progress", key=key, progress=progress)
                        last_progress = progress
                continue
            except HttpError as exc:
                if exc.resp.status not in RETRYABLE_STATUS_CODES:
                    raise PublishError(f"YouTube rejected the upload: {_reason(exc)}") from exc
                error: Exception = exc
                detail = f"HTTP {exc.resp.status}"
            except RETRYABLE_EXCEPTIONS as exc:
                error = exc
                detail = type(exc).__name__

            retries += 1
            if retries > self.max_retries:
                raise PublishError(
                    f"YouTube upload failed after {self.max_retries} retries: {_reason(error)}"
                ) from error
            delay = self.backoff_seconds * (2 ** (retries - 1)) + random.random()
            logger.warning(
                "youtube_upload_retry",
                key=key,
                error=detail,
                attempt=retries,
                delay_seconds=round(delay, 2),
            )
            time.sleep(delay)

        if not response or "id" not in response:
            raise PublishError("YouTube upload completed without a video id")
        return str(response["id"])

    def _set_thumbnail(self, service: Any, youtube_id: str, path: Path) -> bool:
        if not path.is_file():
            logger.warning("youtube_thumbnail_missing", youtube_id=youtube_id)
            return False
        try:
            service.thumbnails().set(
                videoId=youtube_id, media_body=MediaFileUpload(str(path))
            ).execute()
        except HttpError as exc:
            # Custom thumbnails need a verified channel; the upload itself still counts.
            logger.warning("youtube_thumbnail_failed", youtube_id=youtube_id, error=_reason(exc))
            return False
        return True


def _reason(exc: Exception) -> str:
    return getattr(exc, "reason", None) or str(exc)


class FakeYouTubePublisher:
    """Deterministic stand-in that never touches the network."""

    def __init__(self) -> None:
        self.published: deque[PublishRequest] = deque(maxlen=FAKE_HISTORY_LIMIT)

    @staticmethod
    def fake_id(key: str) -> str:
        return "fake" + hashlib.sha256(key.encode("utf-8")).hexdigest()[:7]

    async def publish_async(
        self, request: PublishRequest, credentials: Credentials | None
    ) -> PublishResult:
        self.published.append(request)
        result = PublishResult(
            youtube_id=self.fake_id(request.key),
            thumbnail_set=request.thumbnail_path is not None,
        )
        logger.info("youtube_upload_faked", key=request.key, youtube_id=result.youtube_id)
        return result


_fake_publisher: FakeYouTubePublisher | None = None


def get_publisher() -> Publisher:
    """Publisher for the effective provider mode; raises PublishError when off."""
    global _fake_publisher
    mode = effective_youtube_provider(settings)
    if mode == "off":
        raise PublishError("YouTube publishing is disabled (YOUTUBE_PROVIDER=off)")
    if mode == "fake":
        if _fake_publisher is None:
            _fake_publisher = FakeYouTubePublisher()
        return _fake_publisher
    return YouTubePublisher()
