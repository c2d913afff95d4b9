# tests/test_media.py
"""Tests for ffprobe/ffmpeg media inspection."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from clipsynth.ingestion.media import MediaError, MediaProbe, ToolNotFoundError


class TestDuration:
    @patch("clipsynth.ingestion.media.subprocess.run")
    def test_reads_duration(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout=json.dumps({"format": {"duration": "12.5"}}))
        assert MediaProbe().duration(tmp_path / "a.mp4") == 12.5
        assert mock_run.call_args.args[0][0] == "ffprobe"

    @patch("clipsynth.ingestion.media.subprocess.run")
    def test_missing_duration(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout=json.dumps({"format": {}}))
        with pytest.raises(MediaError, match="No duration"):
            MediaProbe().duration(tmp_path / "a.mp4")

    @patch("clipsynth.ingestion.media.subprocess.run")
    def test_ffprobe_fails(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=1, stderr="Invalid data found")
        with pytest.raises(MediaError, match="ffprobe failed"):
            MediaProbe().duration(tmp_path / "a.mp4")

    def test_ffprobe_not_found(self, tmp_path):
        with patch("clipsynth.ingestion.media.subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(ToolNotFoundError, match="ffprobe not found"):
                MediaProbe().duration(tmp_path / "a.mp4")

    def test_timeout(self, tmp_path):
        with patch("clipsynth.ingestion.media.subprocess.run", side_effect=subprocess.TimeoutExpired("ffprobe", 30)):
            with pytest.raises(MediaError, match="timed out"):
                MediaProbe().duration(tmp_path / "a.mp4")


class TestThumbnail:
    def test_extracts_frame(self, tmp_path):
        output = tmp_path / "thumbs" / "a.jpg"

        def fake_run(cmd, **kwargs):
            output.write_bytes(b"\xff\xd8fake")
            return MagicMock(returncode=0)

        with patch("clipsynth.ingestion.media.subprocess.run", side_effect=fake_run):
            assert MediaProbe().thumbnail(tmp_path / "a.mp4", output) == output

    def test_ffmpeg_fails(self, tmp_path):
        with patch("clipsynth.ingestion.media.subprocess.run", return_value=MagicMock(returncode=1, stderr="err")):
            with pytest.raises(MediaError, match="ffmpeg failed"):
                MediaProbe().thumbnail(tmp_path / "a.mp4", tmp_path / "a.jpg")
