"""Unit tests for the async repositories against SQLite."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from mwarex.storage.database import get_async_session_factory
from mwarex.storage.models import InviteStatus, UserRole, VideoStatus
from mwarex.storage.repositories import (
    AuditLogRepository,
    FeedbackRepository,
    InviteRepository,
    RoomRepository,
    UserRepository,
    VideoRepository,
)

pytestmark = [pytest.mark.anyio, pytest.mark.usefixtures("db_ready")]


async def _creator(session, email: str = "Owner@Example.com"):
    return await UserRepository(session).create_async(email, "hash", "Owner", UserRole.CREATOR)


async def test_user_email_is_normalized_and_settings_merge() -> None:
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        users = UserRepository(session)
        user = await _creator(session)
        assert user.email == "owner@example.com"
        assert await users.get_by_email_async("OWNER@example.com") is not None

        await users.update_settings_async(user, {"push_notifications": True})
        await users.update_settings_async(user, {"default_style": "retro"})
        await session.commit()

    async with SessionLocal() as session:
        reloaded = await UserRepository(session).get_async(user.id)
        assert reloaded.settings["push_notifications"] is True
        assert reloaded.settings["default_style"] == "retro"


async def test_youtube_tokens_keep_refresh_token_when_omitted() -> None:
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        users = UserRepository(session)
        user = await _creator(session)
        await users.update_youtube_tokens_async(user, access_token="a1", refresh_token="r1")
        await users.update_youtube_tokens_async(user, access_token="a2", refresh_token=None)
        await session.commit()

        assert user.youtube_access_token == "a2"
        assert user.youtube_refresh_token == "r1"
        assert user.youtube_connected is True
        assert user.youtube_tokens_updated_at is not None


async def test_list_and_unlink_editors() -> None:
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        users = UserRepository(session)
        creator = await _creator(session)
        editor = await users.create_async(
            "ed@example.com", "hash", "Ed", UserRole.EDITOR, creator_id=creator.id
        )
        assert [e.id for e in await users.list_editors_async(creator.id)] == [editor.id]

        await users.unlink_editor_async(editor)
        assert await users.list_editors_async(creator.id) == []
        assert await users.has_role_async(UserRole.ADMIN) is False


async def test_invite_lifecycle() -> None:
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        creator = await _creator(session)
        invites = InviteRepository(session)
        first = await invites.create_async(creator.id, "ed@example.com", "tok-1")
        first.created_at = first.created_at - timedelta(minutes=1)
        second = await invites.create_async(creator.id, "ed@example.com", "tok-2")

        latest = await invites.latest_pending_for_email_async("ed@example.com")
        assert latest is not None and latest.id == second.id

        editor = await UserRepository(session).create_async(
            "ed@example.com", "hash", "Ed", UserRole.EDITOR
        )
        editor_id = editor.id
        await invites.mark_accepted_async(second, editor_id)
        assert second.status == InviteStatus.ACCEPTED.value
        assert second.editor_id == editor_id

        latest = await invites.latest_pending_for_email_async("ed@example.com")
        assert latest is not None and latest.id == first.id
        assert (await invites.get_by_token_async("tok-2")).status == "accepted"
        assert await invites.get_by_token_async("nope") is None


async def test_rooms_list_owned_and_joined() -> None:
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        users = UserRepository(session)
        owner = await _creator(session)
        other = await users.create_async("other@example.com", "hash", "Other", UserRole.CREATOR)
        editor = await users.create_async("ed@example.com", "hash", "Ed", UserRole.EDITOR)
        rooms = RoomRepository(session)

        mine = await rooms.create_async(owner.id, "Mine", "room-tok-1")
        theirs = await rooms.create_async(other.id, "Theirs", "room-tok-2")
        await rooms.add_member_async(theirs, editor.id)
        await session.commit()

        assert await rooms.is_member_async(theirs.id, editor.id)
        assert not await rooms.is_member_async(mine.id, editor.id)
        assert [r.id for r in await rooms.list_for_user_async(owner.id)] == [mine.id]
        assert [r.id for r in await rooms.list_for_user_async(editor.id)] == [theirs.id]
        assert (await rooms.get_by_invite_token_async("room-tok-2")).id == theirs.id

        refreshed = await rooms.get_async(theirs.id, refresh=True)
        assert refreshed.has_access(editor.id)
        assert refreshed.has_access(other.id)
        assert not refreshed.has_access(owner.id)


async def test_video_find_filters_and_hide_for_user() -> None:
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        users = UserRepository(session)
        creator = await _creator(session)
        editor = await users.create_async(
            "ed@example.com", "hash", "Ed", UserRole.EDITOR, creator_id=creator.id
        )
        videos = VideoRepository(session)
        assigned = await videos.create_async(
            creator_id=creator.id, editor_id=editor.id, status=VideoStatus.PENDING.value
        )
        unassigned = await videos.create_async(
            creator_id=creator.id, status=VideoStatus.RAW_UPLOADED.value
        )
        await session.commit()

        pending = await videos.find_async(creator_id=creator.id, status=VideoStatus.PENDING)
        assert [v.id for v in pending] == [assigned.id]

        visible = await videos.find_async(creator_id=creator.id, editor_or_unassigned=editor.id)
        assert {v.id for v in visible} == {assigned.id, unassigned.id}

        assert await videos.hide_for_user_async(assigned, editor.id) is True
        assert await videos.hide_for_user_async(assigned, editor.id) is False
        await session.commit()

        visible = await videos.find_async(creator_id=creator.id, exclude_deleted_for=editor.id)
        assert [v.id for v in visible] == [unassigned.id]
        still = await videos.find_async(creator_id=creator.id, exclude_deleted_for=creator.id)
        assert len(still) == 2


async def test_video_update_rejects_unknown_status_and_fields() -> None:
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        creator = await _creator(session)
        videos = VideoRepository(session)
        video = await videos.create_async(creator_id=creator.id)

        with pytest.raises(ValueError):
            await videos.update_async(video, status="archived")
        with pytest.raises(AttributeError):
            await videos.update_async(video, colour="red")

        await videos.update_async(video, edit_settings={"brightness": 120})
        await videos.add_comment_async(video, creator.id, "Looks good")
        await session.commit()

        reloaded = await videos.get_async(video.id, refresh=True)
        assert reloaded.edit_settings == {"brightness": 120}
        assert [c.text for c in reloaded.comments] == ["Looks good"]

        await videos.delete_async(reloaded)
        await session.commit()
        assert await videos.get_async(video.id) is None


async def test_feedback_defaults_and_order() -> None:
    SessionLocal = get_async_session_factory()
    async with SessionLocal() as session:
        repo = FeedbackRepository(session)
        first = await repo.create_async(rating=5, message="Great")
        second = await repo.create_async(rating=4, message="Nice", name="Sam", role="Creator")
        await session.commit()

        assert first.name == "Anonymous"
        assert first.role == "Guest"
        listed = await repo.list_async()
        assert {f.id for f in listed} == {first.id, second.id}
        assert listed[0].created_at >= listed[1].created_at


async def test_audit_log_by_video() -> None:
    SessionLocal = get_async_session_factory()
    video_id = uuid4()
    async with SessionLocal() as session:
        repo = AuditLogRepository(session)
        await repo.create_async(
            action="video_approved", user_id="u1", video_id=video_id, outcome="success"
        )
        await repo.create_async(action="video_approved", user_id="u1", video_id=uuid4())
        await session.commit()

        logs = await repo.get_by_video_id_async(video_id)
        assert [log.action for log in logs] == ["video_approved"]
