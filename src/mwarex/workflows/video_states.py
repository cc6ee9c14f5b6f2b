"""Video approval state machine.

Every status change on a Video goes through :func:`transition`, which looks the
action up in ``TRANSITIONS`` and raises ``InvalidTransitionError`` for anything
the table does not allow.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from mwarex.api.errors import InvalidTransitionError
from mwarex.storage.models import VideoStatus

__all__ = [
    "VideoAction",
    "Transition",
    "TRANSITIONS",
    "allowed_sources",
    "can_transition",
    "initial_status",
    "transition",
]


class VideoAction(str, Enum):
    ACCEPT_RAW = "accept_raw"
    REJECT_RAW = "reject_raw"
    SUBMIT_EDIT = "submit_edit"
    APPROVE = "approve"
    REJECT = "reject"
    START_PUBLISH = "start_publish"
    PUBLISH_SUCCEEDED = "publish_succeeded"
    PUBLISH_FAILED = "publish_failed"


@dataclass(frozen=True)
class Transition:
    sources: frozenset[VideoStatus]
    target: VideoStatus


TRANSITIONS: Dict[VideoAction, Transition] = {
    VideoAction.ACCEPT_RAW: Transition(
        frozenset({VideoStatus.RAW_UPLOADED}), VideoStatus.EDITING_IN_PROGRESS
    ),
    VideoAction.REJECT_RAW: Transition(
        frozenset({VideoStatus.RAW_UPLOADED}), VideoStatus.RAW_REJECTED
    ),
    VideoAction.SUBMIT_EDIT: Transition(
        frozenset(
            {
                VideoStatus.EDITING_IN_PROGRESS,
                VideoStatus.REJECTED,
                VideoStatus.RAW_UPLOADED,
                VideoStatus.PENDING,
                VideoStatus.UPLOAD_FAILED,
            }
        ),
        VideoStatus.PENDING,
    ),
    VideoAction.APPROVE: Transition(
        frozenset({VideoStatus.PENDING, VideoStatus.UPLOAD_FAILED}), VideoStatus.APPROVED
    ),
    VideoAction.REJECT: Transition(
        frozenset({VideoStatus.PENDING, VideoStatus.UPLOAD_FAILED}), VideoStatus.REJECTED
    ),
    VideoAction.START_PUBLISH: Transition(
        frozenset({VideoStatus.APPROVED}), VideoStatus.PROCESSING
    ),
    VideoAction.PUBLISH_SUCCEEDED: Transition(
        frozenset({VideoStatus.PROCESSING}), VideoStatus.UPLOADED
    ),
    VideoAction.PUBLISH_FAILED: Transition(
        frozenset({VideoStatus.APPROVED, VideoStatus.PROCESSING}), VideoStatus.UPLOAD_FAILED
    ),
}


def _as_status(value: VideoStatus | str) -> VideoStatus:
    return value if isinstance(value, VideoStatus) else VideoStatus(value)


def initial_status(uploader_role: str, *, raw: bool) -> VideoStatus:
    """Status of a freshly uploaded video.

    Edited cuts always wait for review. Raw footage from a creator waits for an
    editor to pick it up; an editor uploading raw footage is already working on it.
    """
    if not raw:
        return VideoStatus.PENDING
    if uploader_role == "editor":
        return VideoStatus.EDITING_IN_PROGRESS
    return VideoStatus.RAW_UPLOADED


def allowed_sources(action: VideoAction) -> frozenset[VideoStatus]:
    return TRANSITIONS[action].sources


def can_transition(current: VideoStatus | str, action: VideoAction) -> bool:
    try:
        status = _as_status(current)
    except ValueError:
        return False
    return status in TRANSITIONS[action].sources


def transition(current: VideoStatus | str, action: VideoAction) -> VideoStatus:
    """Return the status ``action`` leads to from ``current``."""
    rule = TRANSITIONS[action]
    try:
        status = _as_status(current)
    except ValueError:
        status = None
    if status is None or status not in rule.sources:
        raise InvalidTransitionError(
            action.value.replace("_", " "),
            str(current.value if isinstance(current, VideoStatus) else current),
            frozenset(s.value for s in rule.sources),
        )
    return rule.target
