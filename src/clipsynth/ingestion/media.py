"""Local media inspection via ffprobe + ffmpeg."""

import json
import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class MediaError(Exception):
    """Raised when an uploaded file cannot be read as a video."""


class ToolNotFoundError(MediaError):
    """Raised when ffprobe/ffmpeg is not installed."""


class MediaProbe:
    """Reads the duration of an uploaded video and grabs a thumbnail frame."""

    def __init__(self, timeout: float = 30) -> None:
        self._timeout = timeout

    def duration(self, path: Path) -> float:
        """Container duration in seconds.

        Raises:
            ToolNotFoundError: If ffprobe is not installed.
            MediaError: If the file has no readable duration.
        """
        cmd = [
            "ffprobe",
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            str(path),
        ]
        result = self._run(cmd, "ffprobe")
        if result.returncode != 0:
            raise MediaError(f"ffprobe failed (code {result.returncode}): {result.stderr[:200]}")
        try:
            value = float(json.loads(result.stdout)["format"]["duration"])
        except (ValueError, KeyError, TypeError) as e:
            raise MediaError(f"No duration in ffprobe output for {path.name}") from e
        if value <= 0:
            raise MediaError(f"Non-positive duration for {path.name}: {value}")
        return value

    def thumbnail(self, path: Path, output: Path, timestamp: float = 1.0) -> Path:
        """Extract a single JPEG frame at timestamp.

        Raises:
            MediaError: If extraction fails.
        """
        output.parent.mkdir(parents=True, exist_ok=True)
        cmd = [
            "ffmpeg",
            "-ss", str(timestamp),
            "-i", str(path),
            "-frames:v", "1",
            "-vf", "scale=400:-2",
            "-q:v", "3",
            "-y",
            str(output),
        ]
        result = self._run(cmd, "ffmpeg")
        if result.returncode != 0 or not output.exists():
            raise MediaError(f"ffmpeg failed (code {result.returncode}): {result.stderr[:200]}")
        logger.info("Thumbnail extracted: %s", output)
        return output

    def _run(self, cmd: list[str], tool: str) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            raise MediaError(f"{tool} timed out on {cmd[-1]}")
        except FileNotFoundError:
            raise ToolNotFoundError(
                f"{tool} not found. Install it: https://ffmpeg.org/download.html"
            )
