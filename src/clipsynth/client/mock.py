"""Deterministic stand-in for the backend, used for demos and offline testing."""

import asyncio
import logging
import random
import time
from collections.abc import Sequence
from pathlib import Path

from clipsynth.client.importer import ImportFailedError, ProgressCallback, VideoImporter
from clipsynth.highlights import KeywordHighlightFinder
from clipsynth.models import TranscriptSegment, VideoDetails, VideoSource
from clipsynth.transcript import MockTranscriptGenerator

logger = logging.getLogger(__name__)


class MockImporter(VideoImporter):
    """Simulates uploads and imports with fake delays.

    Any file name or URL containing "error" fails after the transfer
    completes, mimicking a server-side failure. ``delay_scale`` shrinks
    the simulated delays (0 disables them).
    """

    def __init__(self, delay_scale: float = 1.0, seed: int | None = None) -> None:
        self._scale = delay_scale
        self._rng = random.Random(seed)
        self._transcripts = MockTranscriptGenerator()
        self._highlighter = KeywordHighlightFinder()

    async def import_file(self, path: Path, on_progress: ProgressCallback) -> VideoDetails:
        logger.info("Simulating upload of %s", path.name)
        progress = 0
        while progress < 100:
            await self._sleep(0.1 + self._rng.random() * 0.2)
            progress += self._rng.randint(5, 19)
            on_progress(min(progress, 100))

        await self._sleep(2.0)  # transcription

        if "error" in path.name.lower():
            raise ImportFailedError("Upload failed due to a simulated server error.")

        return VideoDetails(
            id=f"vid_{time.time_ns()}",
            name=path.name,
            duration=185,
            thumbnail_url=self._thumbnail(),
            transcript=self._transcripts.generate(path.name, 185),
            source=VideoSource.UPLOAD,
        )

    async def import_url(self, url: str, on_progress: ProgressCallback) -> VideoDetails:
        logger.info("Simulating import of %s", url)
        on_progress(10)
        await self._sleep(1.0)
        on_progress(50)
        await self._sleep(1.5)
        on_progress(100)

        await self._sleep(2.5)

        if "error" in url.lower():
            raise ImportFailedError("Import failed. Invalid YouTube URL or video is private.")

        return VideoDetails(
            id=f"yt_{time.time_ns()}",
            name="Imported YouTube Video",
            duration=320,
            thumbnail_url=self._thumbnail(),
            transcript=self._transcripts.generate("Imported YouTube Video", 320),
            source=VideoSource.YOUTUBE,
        )

    async def find_highlights(self, transcript: Sequence[TranscriptSegment]) -> set[str]:
        await self._sleep(2.5)
        return self._highlighter.find_highlights(transcript)

    def _thumbnail(self) -> str:
        return f"https://picsum.photos/seed/{self._rng.getrandbits(32)}/400/225"

    async def _sleep(self, seconds: float) -> None:
        if self._scale > 0:
            await asyncio.sleep(seconds * self._scale)
