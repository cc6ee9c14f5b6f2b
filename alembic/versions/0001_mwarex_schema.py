"""MwareX schema.

Revision ID: 0001_mwarex
Revises:
Create Date: 2026-10-19

Creates:
- users: creators, editors and admins (with YouTube tokens)
- editor_invites: single-use invite tokens from a creator
- rooms / room_members: shared workspaces joined by invite link
- videos / video_comments: the review-to-publish pipeline
- feedback: landing page testimonials
- audit_logs: approval and publishing trail
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from mwarex.storage.models import GUID


revision: str = "0001_mwarex"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(128), nullable=False),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default="creator"),
        sa.Column("creator_id", GUID(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=True),
        sa.Column("youtube_access_token", sa.Text(), nullable=True),
        sa.Column("youtube_refresh_token", sa.Text(), nullable=True),
        sa.Column("youtube_tokens_updated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_creator_id", "users", ["creator_id"])

    op.create_table(
        "editor_invites",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("creator_id", GUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("editor_email", sa.String(320), nullable=False),
        sa.Column("editor_id", GUID(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="invited"),
        sa.Column("invite_token", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_editor_invites_creator_id", "editor_invites", ["creator_id"])
    op.create_index(
        "ix_editor_invites_invite_token", "editor_invites", ["invite_token"], unique=True
    )
    op.create_index(
        "ix_editor_invites_email_status", "editor_invites", ["editor_email", "status"]
    )

    op.create_table(
        "rooms",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("owner_id", GUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("invite_token", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_rooms_owner_id", "rooms", ["owner_id"])
    op.create_index("ix_rooms_invite_token", "rooms", ["invite_token"], unique=True)

    op.create_table(
        "room_members",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("room_id", GUID(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("user_id", GUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default="editor"),
        sa.Column("joined_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("room_id", "user_id", name="ux_room_members_room_user"),
    )
    op.create_index("ix_room_members_room_id", "room_members", ["room_id"])
    op.create_index("ix_room_members_user_id", "room_members", ["user_id"])

    op.create_table(
        "videos",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("file_url", sa.String(1024), nullable=True),
        sa.Column("raw_file_url", sa.String(1024), nullable=True),
        sa.Column("title", sa.String(256), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.String(1024), nullable=True),
        sa.Column("creator_id", GUID(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("editor_id", GUID(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("room_id", GUID(), sa.ForeignKey("rooms.id"), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("has_raw_video", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "editor_review_status", sa.String(16), nullable=False, server_default="pending"
        ),
        sa.Column("editor_rejection_reason", sa.Text(), nullable=True),
        sa.Column("youtube_id", sa.String(64), nullable=True),
        sa.Column("publish_error", sa.Text(), nullable=True),
        sa.Column("edit_settings", sa.JSON(), nullable=True),
        sa.Column("deleted_for", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_videos_editor_id", "videos", ["editor_id"])
    op.create_index("ix_videos_room_id", "videos", ["room_id"])
    op.create_index("ix_videos_created_at", "videos", ["created_at"])
    op.create_index("ix_videos_creator_status", "videos", ["creator_id", "status"])

    op.create_table(
        "video_comments",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("video_id", GUID(), sa.ForeignKey("videos.id"), nullable=False),
        sa.Column("sender_id", GUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_video_comments_video_id", "video_comments", ["video_id"])

    op.create_table(
        "feedback",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False, server_default="Anonymous"),
        sa.Column("role", sa.String(128), nullable=False, server_default="Guest"),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_feedback_created_at", "feedback", ["created_at"])

    op.create_table(
        "audit_logs",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("video_id", GUID(), nullable=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("outcome", sa.String(32), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_video_id", "audit_logs", ["video_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("feedback")
    op.drop_table("video_comments")
    op.drop_table("videos")
    op.drop_table("room_members")
    op.drop_table("rooms")
    op.drop_table("editor_invites")
    op.drop_table("users")
