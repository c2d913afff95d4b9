"""Domain models for ClipSynth."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base for models exchanged with the frontend (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TranscriptSegment(_WireModel):
    """A single timed transcript unit."""

    id: str = Field(min_length=1)
    text: str
    start: float = Field(ge=0, allow_inf_nan=False)  # seconds
    end: float = Field(allow_inf_nan=False)  # seconds

    @model_validator(mode="after")
    def _check_bounds(self) -> "TranscriptSegment":
        if self.end <= self.start:
            raise ValueError(f"segment {self.id!r} ends ({self.end}) before it starts ({self.start})")
        return self


class VideoSource(str, Enum):
    """Where a video came from."""

    UPLOAD = "upload"
    YOUTUBE = "youtube"


class VideoDetails(_WireModel):
    """Normalized result of a successful import. Immutable once created."""

    id: str = Field(min_length=1)
    name: str
    duration: float = Field(gt=0)  # seconds
    thumbnail_url: str
    transcript: tuple[TranscriptSegment, ...] = ()
    source: VideoSource
    video_url: str | None = None  # playable file, uploads only

    @model_validator(mode="after")
    def _check_video_url(self) -> "VideoDetails":
        if self.video_url is not None and self.source is not VideoSource.UPLOAD:
            raise ValueError("video_url is only available for uploaded videos")
        return self

    @property
    def segment_ids(self) -> set[str]:
        return {seg.id for seg in self.transcript}


class UploadStatus(str, Enum):
    """Lifecycle of one import session."""

    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
