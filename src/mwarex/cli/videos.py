"""Video inspection and publish-retry commands."""

from __future__ import annotations

from uuid import UUID

import anyio
import click

from mwarex.cli.ui import console, format_status, render_videos_table
from mwarex.storage.models import VideoStatus


@click.group()
def videos() -> None:
    """Inspect videos and retry publishing."""


@videos.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in VideoStatus]),
    default=None,
    help="Only show videos in this status",
)
def videos_list(status: str | None) -> None:
    """List videos, newest first."""
    from mwarex.storage.database import get_async_session_factory, shutdown_async_db
    from mwarex.storage.repositories import VideoRepository

    async def _run():
        try:
            async with get_async_session_factory()() as session:
                return await VideoRepository(session).find_async(
                    status=VideoStatus(status) if status else None
                )
        finally:
            await shutdown_async_db()

    render_videos_table(anyio.run(_run))


@videos.command("publish")
@click.argument("video_id")
def videos_publish(video_id: str) -> None:
    """Publish an approved (or previously failed) video to YouTube now."""
    from mwarex.storage.database import get_async_session_factory, shutdown_async_db
    from mwarex.storage.repositories import VideoRepository
    from mwarex.workflows.publish import publish_video_async

    try:
        vid = UUID(video_id)
    except ValueError as exc:
        raise click.BadParameter("VIDEO_ID must be a UUID") from exc

    async def _run():
        try:
            await publish_video_async(vid)
            async with get_async_session_factory()() as session:
                return await VideoRepository(session).get_async(vid)
        finally:
            await shutdown_async_db()

    try:
        video = anyio.run(_run)
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc
    if video is None:
        raise click.ClickException(f"Video {video_id} not found")
    console.print(f"{video.id}: {format_status(video.status)}")
    if video.youtube_id:
        console.print(f"https://www.youtube.com/watch?v={video.youtube_id}")
    elif video.publish_error:
        console.print(f"[red]{video.publish_error}[/red]")


def register(cli: click.Group) -> None:
    cli.add_command(videos)
