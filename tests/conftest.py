# tests/conftest.py
"""Shared fixtures for ClipSynth tests."""

from unittest.mock import MagicMock, patch

import pytest

from clipsynth.ingestion.media import MediaError, MediaProbe
from clipsynth.ingestion.upload import UploadStore
from clipsynth.ingestion.youtube import YouTubeImporter
from clipsynth.models import TranscriptSegment, VideoDetails, VideoSource
from clipsynth.service import ClipSynthService


@pytest.fixture
def sample_segments():
    """Ordered transcript with one keyword hook."""
    return [
        TranscriptSegment(id="seg_0", text="Hello everyone and welcome back.", start=0.0, end=4.0),
        TranscriptSegment(id="seg_1", text="Today we look at a new phone.", start=4.5, end=8.0),
        TranscriptSegment(id="seg_2", text="This could be a Game-Changer for creators.", start=8.5, end=12.0),
        TranscriptSegment(id="seg_3", text="Thanks for watching.", start=12.5, end=15.0),
    ]


@pytest.fixture
def plain_segments():
    """Transcript without any hook keyword."""
    return [
        TranscriptSegment(id="a", text="First line.", start=0.0, end=3.0),
        TranscriptSegment(id="b", text="Second line.", start=3.0, end=6.0),
        TranscriptSegment(id="c", text="Third line.", start=6.0, end=9.0),
    ]


@pytest.fixture
def sample_video(sample_segments):
    """Pre-built YouTube VideoDetails."""
    return VideoDetails(
        id="yt_dQw4w9WgXcQ",
        name="Unboxing the new phone",
        duration=15.0,
        thumbnail_url="https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        transcript=sample_segments,
        source=VideoSource.YOUTUBE,
    )


@pytest.fixture
def youtube_info():
    """yt-dlp info dict without captions."""
    return {
        "id": "dQw4w9WgXcQ",
        "title": "Unboxing the new phone",
        "duration": 95,
        "thumbnails": [
            {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/default.jpg"},
            {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"},
        ],
        "subtitles": {},
        "automatic_captions": {},
    }


@pytest.fixture
def mock_youtube(youtube_info):
    """YouTubeImporter with yt-dlp replaced by a canned info dict."""
    importer = YouTubeImporter()
    with patch.object(importer, "_fetch_info", return_value=youtube_info) as mock:
        importer._mock = mock
        yield importer


@pytest.fixture
def upload_store(tmp_path):
    """UploadStore writing into a temp dir with a small size cap."""
    return UploadStore(root=tmp_path / "uploads", max_bytes=1024, allowed_types=["video/mp4"])


@pytest.fixture
def mock_probe():
    """MediaProbe reporting 42s and failing thumbnails."""
    probe = MagicMock(spec=MediaProbe)
    probe.duration.return_value = 42.0
    probe.thumbnail.side_effect = MediaError("no ffmpeg in tests")
    return probe


@pytest.fixture
def mock_llm():
    """LLMClient with mocked litellm.completion."""
    from clipsynth.llm import LLMClient

    with patch("clipsynth.llm.litellm.completion") as mock_completion:
        mock_response = MagicMock()
        mock_response.choices = [MagicMock()]
        mock_response.choices[0].message.content = '["seg_2", "seg_9"]'
        mock_completion.return_value = mock_response

        with patch.dict("os.environ", {"OPENAI_API_KEY": "test-key-123"}):
            client = LLMClient()
            client._mock_completion = mock_completion
            yield client


@pytest.fixture
def service(mock_youtube, upload_store, mock_probe):
    """Fully wired ClipSynthService with mocked dependencies."""
    return ClipSynthService(
        youtube=mock_youtube,
        uploads=upload_store,
        probe=mock_probe,
        public_url="http://testserver",
    )
