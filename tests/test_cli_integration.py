# tests/test_cli_integration.py
"""CLI integration tests using Typer's CliRunner."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from clipsynth.cli import app
from clipsynth.client.mock import MockImporter


runner = CliRunner()


@pytest.fixture
def instant_mock():
    """Make --mock imports run without simulated delays."""
    with patch("clipsynth.cli._get_importer", return_value=MockImporter(delay_scale=0, seed=3)):
        yield


class TestImport:
    def test_mock_file_import(self, instant_mock):
        result = runner.invoke(app, ["import", "holiday.mp4", "--mock"])
        assert result.exit_code == 0
        assert "Imported: holiday.mp4" in result.output
        assert "Processing" in result.output

    def test_mock_error_file(self, instant_mock):
        result = runner.invoke(app, ["import", "video-error.mp4", "--mock"])
        assert result.exit_code == 1
        assert "simulated server error" in result.output

    def test_mock_url_with_highlights(self, instant_mock, tmp_path):
        out = tmp_path / "video.json"
        result = runner.invoke(app, ["import", "https://youtu.be/dQw4w9WgXcQ", "--mock", "-H", "-o", str(out)])
        assert result.exit_code == 0
        assert "⭐" in result.output
        data = json.loads(out.read_text())
        assert data["source"] == "youtube"

    def test_missing_file(self):
        result = runner.invoke(app, ["import", "/nonexistent/clip.mp4"])
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestHighlights:
    def test_from_video_json(self, tmp_path, sample_video):
        path = tmp_path / "video.json"
        path.write_text(json.dumps(sample_video.to_wire()))
        result = runner.invoke(app, ["highlights", str(path)])
        assert result.exit_code == 0
        assert "seg_2" in result.output

    def test_from_transcript_array(self, tmp_path, plain_segments):
        path = tmp_path / "transcript.json"
        path.write_text(json.dumps([s.to_wire() for s in plain_segments]))
        result = runner.invoke(app, ["highlights", str(path)])
        assert result.exit_code == 0
        assert "Second line." in result.output

    def test_no_highlights(self, tmp_path, plain_segments):
        path = tmp_path / "transcript.json"
        path.write_text(json.dumps([s.to_wire() for s in plain_segments[:1]]))
        result = runner.invoke(app, ["highlights", str(path)])
        assert result.exit_code == 0
        assert "No highlights found" in result.output

    def test_bad_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(app, ["highlights", str(path)])
        assert result.exit_code == 1

    def test_model_without_key(self, tmp_path, sample_video):
        path = tmp_path / "video.json"
        path.write_text(json.dumps(sample_video.to_wire()))
        with patch.dict("os.environ", {}, clear=True):
            result = runner.invoke(app, ["highlights", str(path), "--model"])
        assert result.exit_code == 1


class TestServe:
    def test_misconfiguration_exits(self):
        from clipsynth.service import ConfigurationError

        with patch("clipsynth.server._get_service", side_effect=ConfigurationError("no key")):
            result = runner.invoke(app, ["serve"])
        assert result.exit_code == 1
        assert "no key" in result.output

    def test_runs_http_transport(self, service):
        with patch("clipsynth.server._get_service", return_value=service), \
                patch("clipsynth.server.mcp.run") as mock_run:
            result = runner.invoke(app, ["serve", "--port", "4000"])
        assert result.exit_code == 0
        assert mock_run.call_args.kwargs["transport"] == "streamable-http"
        assert mock_run.call_args.kwargs["port"] == 4000


def test_no_args_shows_help():
    result = runner.invoke(app, [])
    assert "clipsynth" in result.output.lower()
