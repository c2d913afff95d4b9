"""Core business logic for ClipSynth."""

import logging
import uuid
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

from clipsynth.config import settings
from clipsynth.highlights import HighlightFinder, KeywordHighlightFinder, ModelHighlightFinder, ordered
from clipsynth.ingestion.media import MediaError, MediaProbe, ToolNotFoundError
from clipsynth.ingestion.upload import UploadStore
from clipsynth.ingestion.youtube import YouTubeImporter
from clipsynth.llm import LLMClient
from clipsynth.models import TranscriptSegment, VideoDetails, VideoSource
from clipsynth.transcript import MockTranscriptGenerator, ModelTranscriptGenerator, TranscriptGenerator

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised at startup when the configured modes cannot be served."""


class EmptyTranscriptError(ValueError):
    """Raised when highlights are requested for an empty transcript."""


class ClipSynthService:
    """Core service layer, single orchestration point for all ClipSynth operations.

    The HTTP routes, the MCP tools and the CLI are thin wrappers over this class.
    Dependencies are injected via constructor for testability.
    """

    def __init__(
        self,
        youtube: YouTubeImporter | None = None,
        uploads: UploadStore | None = None,
        probe: MediaProbe | None = None,
        transcripts: TranscriptGenerator | None = None,
        highlighter: HighlightFinder | None = None,
        public_url: str | None = None,
    ) -> None:
        self._transcripts = transcripts or MockTranscriptGenerator(settings.max_transcript_segments)
        self._youtube = youtube or YouTubeImporter(self._transcripts)
        self._uploads = uploads or UploadStore()
        self._probe = probe or MediaProbe()
        self._highlighter = highlighter or KeywordHighlightFinder()
        self._public_url = (public_url or settings.public_url).rstrip("/")

    @classmethod
    def from_settings(cls, llm_client: LLMClient | None = None) -> "ClipSynthService":
        """Build a service for the configured transcript and highlight modes.

        Raises:
            ConfigurationError: If a model-backed mode is selected without an API key.
        """
        needs_llm = settings.transcript_mode == "model" or settings.highlight_strategy == "model"
        llm = llm_client or LLMClient()
        if needs_llm and not llm.available:
            raise ConfigurationError(
                "Model-backed transcript/highlight mode selected but no LLM API key is set. "
                "Set one of ANTHROPIC_API_KEY, OPENAI_API_KEY, GOOGLE_API_KEY "
                "or switch CLIPSYNTH_TRANSCRIPT_MODE/CLIPSYNTH_HIGHLIGHT_STRATEGY."
            )

        if settings.transcript_mode == "model":
            transcripts: TranscriptGenerator = ModelTranscriptGenerator(llm, settings.max_transcript_segments)
        else:
            transcripts = MockTranscriptGenerator(settings.max_transcript_segments)

        if settings.highlight_strategy == "model":
            highlighter: HighlightFinder = ModelHighlightFinder(llm)
        else:
            highlighter = KeywordHighlightFinder()

        logger.info(
            "Service configured: transcripts=%s highlights=%s",
            settings.transcript_mode, settings.highlight_strategy,
        )
        return cls(transcripts=transcripts, highlighter=highlighter)

    @property
    def uploads(self) -> UploadStore:
        return self._uploads

    def import_youtube(self, url: str) -> VideoDetails:
        """Import a YouTube video by URL.

        Raises:
            InvalidSourceError: If the URL is not a valid YouTube video URL.
                No network call is made in that case.
            ExtractionError: If the metadata fetch fails.
        """
        YouTubeImporter.parse_video_id(url)
        logger.info("Importing YouTube video: %s", url)
        video = self._youtube.extract(url)
        logger.info("Video imported: %s (%d segments)", video.id, len(video.transcript))
        return video

    def import_upload(self, filename: str, content_type: str | None, stream: BinaryIO) -> VideoDetails:
        """Store an uploaded file and describe it.

        Raises:
            UploadRejectedError: If the upload fails validation.
            MediaError: If the stored file is not a readable video.
        """
        path = self._uploads.save(filename, content_type, stream)
        name = filename or path.name
        try:
            duration = self._probe_duration(path)
            video = VideoDetails(
                id=f"vid_{uuid.uuid4().hex[:12]}",
                name=name,
                duration=duration,
                thumbnail_url=self._thumbnail_url(path),
                transcript=self._transcripts.generate(name, duration),
                source=VideoSource.UPLOAD,
                video_url=self._file_url(path.name),
            )
        except Exception:
            self._uploads.delete(path)
            self._uploads.delete(self._thumbnail_path(path))
            raise
        logger.info("Upload processed: %s -> %s (%.1fs)", name, video.id, duration)
        return video

    def find_highlights(self, transcript: Sequence[TranscriptSegment]) -> list[str]:
        """Hook-worthy segment IDs, in transcript order.

        Raises:
            EmptyTranscriptError: If the transcript has no segments.
        """
        if not transcript:
            raise EmptyTranscriptError("Transcript is missing or empty.")
        found = self._highlighter.find_highlights(transcript)
        return ordered(transcript, found)

    def _probe_duration(self, path: Path) -> float:
        try:
            return self._probe.duration(path)
        except ToolNotFoundError as e:
            logger.warning("%s; using fallback duration %.0fs", e, settings.fallback_duration)
            return settings.fallback_duration

    def _thumbnail_url(self, path: Path) -> str:
        thumb = self._thumbnail_path(path)
        try:
            self._probe.thumbnail(path, thumb)
        except MediaError as e:
            logger.warning("Thumbnail extraction failed for %s: %s", path.name, e)
            return f"https://picsum.photos/seed/{path.stem}/400/225"
        return self._file_url(thumb.name)

    @staticmethod
    def _thumbnail_path(path: Path) -> Path:
        return path.with_name(f"{path.stem}_thumb.jpg")

    def _file_url(self, name: str) -> str:
        return f"{self._public_url}/uploads/{name}"
