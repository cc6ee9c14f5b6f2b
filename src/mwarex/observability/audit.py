"""Audit logging helper for approval decisions and publish outcomes.

Writes through its own session so an audit row survives even when the
caller's transaction rolls back. Failures are logged but never propagate.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from mwarex.observability.logging import get_logger
from mwarex.storage.database import get_async_session_factory
from mwarex.storage.repositories import AuditLogRepository

logger = get_logger(__name__)

__all__ = ["log_audit_event_async", "AuditAction"]


class AuditAction:
    VIDEO_APPROVED = "video_approved"
    VIDEO_REJECTED = "video_rejected"
    VIDEO_PUBLISHED = "video_published"
    VIDEO_PUBLISH_FAILED = "video_publish_failed"
    ROOM_JOINED = "room_joined"
    INVITE_ACCEPTED = "invite_accepted"


async def log_audit_event_async(
    action: str,
    user_id: str | None = None,
    video_id: UUID | None = None,
    outcome: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Record an audit event.

    Args:
        action: Event type (e.g., "video_approved", "room_joined")
        user_id: Optional acting user identifier
        video_id: Optional video the event concerns
        outcome: Optional outcome ("success", "failure")
        metadata: Optional additional context
    """
    try:
        SessionLocal = get_async_session_factory()
        async with SessionLocal() as session:
            repo = AuditLogRepository(session)
            await repo.create_async(
                action=action,
                user_id=user_id,
                video_id=video_id,
                outcome=outcome,
                metadata=metadata or {},
            )
            await session.commit()
    except Exception as e:
        logger.error(
            "audit_log_failed",
            action=action,
            user_id=user_id,
            video_id=str(video_id) if video_id else None,
            error=str(e),
        )
