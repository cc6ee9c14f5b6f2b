"""Shared CLI UI helpers (Rich formatting)."""

from __future__ import annotations

from typing import Iterable

from rich.console import Console
from rich.table import Table

from mwarex.storage.models import Video, VideoStatus

console = Console()


def format_status(status: str) -> str:
    """Return colorized status string for terminal output."""
    colors = {
        VideoStatus.RAW_UPLOADED.value: "grey62",
        VideoStatus.EDITING_IN_PROGRESS.value: "cyan",
        VideoStatus.PENDING.value: "yellow",
        VideoStatus.APPROVED.value: "yellow",
        VideoStatus.PROCESSING.value: "cyan",
        VideoStatus.UPLOADED.value: "green",
        VideoStatus.REJECTED.value: "red",
        VideoStatus.RAW_REJECTED.value: "red",
        VideoStatus.UPLOAD_FAILED.value: "red",
    }
    color = colors.get(status, "white")
    return f"[{color}]{status}[/{color}]"


def render_videos_table(videos: Iterable[Video]) -> None:
    table = Table(title="Videos", show_lines=False)
    table.add_column("Video ID", style="white")
    table.add_column("Title", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("YouTube", style="magenta")
    table.add_column("Created", style="dim")

    for video in videos:
        table.add_row(
            str(video.id),
            video.title or "-",
            format_status(video.status),
            video.youtube_id or "-",
            video.created_at.strftime("%Y-%m-%d %H:%M") if video.created_at else "-",
        )

    console.print(table)
