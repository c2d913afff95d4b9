"""Upload/import lifecycle for one user session.

IDLE -> UPLOADING -> PROCESSING -> SUCCESS | ERROR, with ``reset()`` returning
to IDLE from anywhere. Only one import runs at a time; ``reset()`` aborts an
in-flight import or highlight request.
"""

import asyncio
import logging
import math
from collections.abc import Callable
from pathlib import Path

from clipsynth.client.importer import Source, VideoImporter
from clipsynth.config import settings
from clipsynth.models import UploadStatus, VideoDetails

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "An unknown error occurred."


class InvalidTransitionError(RuntimeError):
    """Raised when an operation is not allowed in the current state."""


class ImportSession:
    """State machine driving one import and the highlight request that follows it.

    Attributes:
        status: Current UploadStatus.
        progress: Transfer progress in [0, 100]; never decreases during an import.
        error: User-facing message when status is ERROR.
        result: Imported VideoDetails when status is SUCCESS.
        highlights: Segment IDs from the last find_highlights() call.
    """

    def __init__(
        self,
        importer: VideoImporter,
        import_timeout: float | None = None,
        highlight_timeout: float | None = None,
        on_change: Callable[["ImportSession"], None] | None = None,
    ) -> None:
        self._importer = importer
        self._import_timeout = import_timeout if import_timeout is not None else settings.import_timeout
        self._highlight_timeout = highlight_timeout if highlight_timeout is not None else settings.highlight_timeout
        self._on_change = on_change

        self.status = UploadStatus.IDLE
        self.progress = 0.0
        self.error: str | None = None
        self.result: VideoDetails | None = None
        self.highlights: set[str] = set()

        # Bumped by reset(); callbacks and awaits from an older run are ignored.
        self._generation = 0
        self._task: asyncio.Future | None = None
        self._highlight_task: asyncio.Future | None = None

    @property
    def busy(self) -> bool:
        return self.status in (UploadStatus.UPLOADING, UploadStatus.PROCESSING)

    async def start(self, source: Source) -> UploadStatus:
        """Import a file (Path) or URL (str) and wait for the outcome.

        Returns:
            The final status: SUCCESS, ERROR, or IDLE if reset() aborted the import.

        Raises:
            InvalidTransitionError: If the session is not IDLE.
            ValueError: If the URL is empty.
            TypeError: If source is neither a Path nor a str.
        """
        if self.status is not UploadStatus.IDLE:
            raise InvalidTransitionError(f"Cannot start an import while {self.status.value}")
        if isinstance(source, str):
            source = source.strip()
            if not source:
                raise ValueError("A video URL is required")
        elif not isinstance(source, Path):
            raise TypeError(f"Unsupported source: {source!r}")

        generation = self._generation
        self.status = UploadStatus.UPLOADING
        self.progress = 0.0
        logger.info("Import started: %s", source)
        self._notify()

        task = asyncio.ensure_future(
            asyncio.wait_for(
                self._importer.import_source(source, lambda p: self._on_progress(generation, p)),
                self._import_timeout,
            )
        )
        self._task = task
        video = None
        message = None
        try:
            video = await task
        except asyncio.CancelledError:
            if generation == self._generation:
                raise
        except asyncio.TimeoutError:
            message = f"Import timed out after {self._import_timeout:g}s."
        except Exception as e:
            message = str(e) or UNKNOWN_ERROR
        finally:
            if self._task is task:
                self._task = None

        # reset() ran while we were suspended; its IDLE state wins.
        if generation != self._generation:
            logger.info("Import outcome discarded after reset")
            return self.status
        if message is not None:
            self._fail(message)
        else:
            self._succeed(video)
        return self.status

    async def find_highlights(self) -> set[str]:
        """Ask for hook segments of the imported video.

        Failures and timeouts degrade to an empty set. IDs not present in
        the transcript are dropped.

        Raises:
            InvalidTransitionError: If there is no successful import.
        """
        if self.status is not UploadStatus.SUCCESS or self.result is None:
            raise InvalidTransitionError("Highlights need a successfully imported video")

        generation = self._generation
        video = self.result
        task = asyncio.ensure_future(
            asyncio.wait_for(self._importer.find_highlights(video.transcript), self._highlight_timeout)
        )
        self._highlight_task = task
        try:
            ids = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return set()
            raise
        except Exception as e:
            logger.warning("Highlight request failed: %s", str(e) or type(e).__name__)
            ids = set()
        finally:
            if self._highlight_task is task:
                self._highlight_task = None

        if generation != self._generation:
            return set()
        self.highlights = set(ids) & video.segment_ids
        self._notify()
        return self.highlights

    def reset(self) -> None:
        """Return to IDLE, clearing progress, error and result; abort in-flight requests."""
        self._generation += 1
        for task in (self._task, self._highlight_task):
            if task is not None and not task.done():
                task.cancel()
        self._task = None
        self._highlight_task = None

        self.status = UploadStatus.IDLE
        self.progress = 0.0
        self.error = None
        self.result = None
        self.highlights = set()
        self._notify()

    def _on_progress(self, generation: int, value: float) -> None:
        if generation != self._generation or self.status is not UploadStatus.UPLOADING:
            return
        try:
            value = float(value)
        except (TypeError, ValueError):
            return
        if math.isnan(value):
            return
        value = min(max(value, 0.0), 100.0)
        if value < self.progress:
            return
        self.progress = value
        if value >= 100.0:
            self.status = UploadStatus.PROCESSING
            logger.info("Transfer complete, processing")
        self._notify()

    def _succeed(self, video: VideoDetails) -> None:
        self.status = UploadStatus.SUCCESS
        self.progress = 100.0
        self.result = video
        logger.info("Import succeeded: %s", video.id)
        self._notify()

    def _fail(self, message: str) -> None:
        self.status = UploadStatus.ERROR
        self.error = message
        logger.warning("Import failed: %s", message)
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
