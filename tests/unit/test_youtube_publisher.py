"""Unit tests for the YouTube publishers."""

from __future__ import annotations

from pathlib import Path

import httplib2
import pytest
from googleapiclient.errors import HttpError

from mwarex.api.errors import PublishError
from mwarex.publishing import youtube
from mwarex.publishing.youtube import (
    FakeYouTubePublisher,
    PublishRequest,
    YouTubePublisher,
    get_publisher,
)


def _http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), b"{}")


class _ScriptedInsert:
    """Stands in for a resumable insert request; replays scripted chunk outcomes."""

    def __init__(self, outcomes: list) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    def next_chunk(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(youtube.time, "sleep", lambda _s: None)


def test_fake_id_is_deterministic() -> None:
    assert FakeYouTubePublisher.fake_id("abc") == FakeYouTubePublisher.fake_id("abc")
    assert FakeYouTubePublisher.fake_id("abc") != FakeYouTubePublisher.fake_id("abd")
    assert FakeYouTubePublisher.fake_id("abc").startswith("fake")


@pytest.mark.anyio
async def test_fake_publisher_records_requests() -> None:
    publisher = FakeYouTubePublisher()
    request = PublishRequest(key="v1", video_path=Path("x.mp4"), title="T", description="")
    result = await publisher.publish_async(request, None)

    assert result.youtube_id == FakeYouTubePublisher.fake_id("v1")
    assert result.watch_url.endswith(result.youtube_id)
    assert list(publisher.published) == [request]


@pytest.mark.anyio
async def test_fake_publisher_history_is_bounded() -> None:
    publisher = FakeYouTubePublisher()
    for n in range(youtube.FAKE_HISTORY_LIMIT + 5):
        request = PublishRequest(key=f"v{n}", video_path=Path("x.mp4"), title="T")
        await publisher.publish_async(request, None)

    assert len(publisher.published) == youtube.FAKE_HISTORY_LIMIT
    assert publisher.published[-1].key == f"v{youtube.FAKE_HISTORY_LIMIT + 4}"


def test_get_publisher_modes(monkeypatch) -> None:
    from mwarex.config import settings

    first = get_publisher()
    assert isinstance(first, FakeYouTubePublisher)
    assert get_publisher() is first

    monkeypatch.setattr(settings, "youtube_provider", "off")
    with pytest.raises(PublishError):
        get_publisher()

    monkeypatch.setattr(settings, "youtube_provider", "real")
    assert isinstance(get_publisher(), YouTubePublisher)


def test_upload_retries_transient_errors(no_sleep) -> None:
    insert = _ScriptedInsert([_http_error(503), _http_error(500), (None, {"id": "yt123"})])
    publisher = YouTubePublisher(max_retries=3, backoff_seconds=0)

    assert publisher._execute_upload(insert, key="v1") == "yt123"
    assert insert.calls == 3


def test_upload_retries_transport_errors(no_sleep) -> None:
    insert = _ScriptedInsert(
        [
            httplib2.ServerNotFoundError("dns"),
            ConnectionResetError("reset"),
            (None, {"id": "yt456"}),
        ]
    )
    publisher = YouTubePublisher(max_retries=3, backoff_seconds=0)

    assert publisher._execute_upload(insert, key="v1") == "yt456"
    assert insert.calls == 3

    insert = _ScriptedInsert([TimeoutError("slow")] * 2)
    with pytest.raises(PublishError, match="after 1 retries"):
        YouTubePublisher(max_retries=1, backoff_seconds=0)._execute_upload(insert, key="v1")


def test_upload_gives_up_after_max_retries(no_sleep) -> None:
    insert = _ScriptedInsert([_http_error(503)] * 3)
    publisher = YouTubePublisher(max_retries=2, backoff_seconds=0)

    with pytest.raises(PublishError, match="after 2 retries"):
        publisher._execute_upload(insert, key="v1")
    assert insert.calls == 3


def test_upload_does_not_retry_client_errors(no_sleep) -> None:
    insert = _ScriptedInsert([_http_error(403)])
    publisher = YouTubePublisher(max_retries=5, backoff_seconds=0)

    with pytest.raises(PublishError, match="rejected"):
        publisher._execute_upload(insert, key="v1")
    assert insert.calls == 1


def test_upload_without_video_id_fails(no_sleep) -> None:
    publisher = YouTubePublisher(max_retries=1, backoff_seconds=0)
    with pytest.raises(PublishError, match="without a video id"):
        publisher._execute_upload(_ScriptedInsert([(None, {})]), key="v1")


def test_publish_requires_existing_file(tmp_path: Path) -> None:
    request = PublishRequest(
        key="v1", video_path=tmp_path / "missing.mp4", title="T", description=""
    )
    with pytest.raises(PublishError, match="not found"):
        YouTubePublisher().publish(request, credentials=None)  # type: ignore[arg-type]
