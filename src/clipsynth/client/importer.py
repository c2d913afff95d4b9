"""Client-side contract for turning a file or URL into VideoDetails."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path

from clipsynth.models import TranscriptSegment, VideoDetails

ProgressCallback = Callable[[float], None]
Source = Path | str


class ImportFailedError(Exception):
    """Raised when an import is rejected; the message is shown to the user verbatim."""


class VideoImporter(ABC):
    """Imports a video for an ImportSession.

    Implementations report transfer progress through ``on_progress`` with
    non-decreasing values in [0, 100], reaching 100 before they return.
    Server-side processing after that point is not progress-tracked.
    """

    async def import_source(self, source: Source, on_progress: ProgressCallback) -> VideoDetails:
        """Dispatch on the source kind: a Path is a local file, a str is a URL."""
        if isinstance(source, Path):
            return await self.import_file(source, on_progress)
        return await self.import_url(source, on_progress)

    @abstractmethod
    async def import_file(self, path: Path, on_progress: ProgressCallback) -> VideoDetails:
        """Upload a local video file."""

    @abstractmethod
    async def import_url(self, url: str, on_progress: ProgressCallback) -> VideoDetails:
        """Import a video by its YouTube URL."""

    @abstractmethod
    async def find_highlights(self, transcript: Sequence[TranscriptSegment]) -> set[str]:
        """Hook-worthy segment IDs for a transcript."""
