"""Configuration management for ClipSynth."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable overrides.

    All settings can be overridden via environment variables
    prefixed with CLIPSYNTH_ (e.g. CLIPSYNTH_PORT, CLIPSYNTH_API_URL).
    """

    model_config = {"env_prefix": "CLIPSYNTH_"}

    # Storage
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".clipsynth",
        description="Root directory for uploaded files",
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 3001
    public_url: str = Field(
        default="http://localhost:3001",
        description="Base URL under which /uploads/<filename> is reachable",
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    # Client
    api_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the backend API used by the client",
    )
    import_timeout: float = 600.0  # seconds, whole import incl. processing
    highlight_timeout: float = 60.0

    # Uploads (illustrative limits, not product requirements)
    max_upload_bytes: int = 2 * 1024**3
    allowed_video_types: list[str] = Field(
        default_factory=lambda: [
            "video/mp4",
            "video/quicktime",
            "video/x-msvideo",
            "video/webm",
        ]
    )
    fallback_duration: float = 185.0  # used when ffprobe is not installed

    # Transcript / highlights
    transcript_mode: Literal["mock", "model"] = "mock"
    highlight_strategy: Literal["keyword", "model"] = "keyword"
    max_transcript_segments: int = 50

    # LLM (BYOK)
    default_model: str = "gpt-4o"
    llm_timeout: float = 60.0
    metadata_timeout: float = 30.0  # yt-dlp socket timeout

    @property
    def uploads_dir(self) -> Path:
        """Directory holding uploaded videos and their thumbnails."""
        return self.data_dir / "uploads"

    def ensure_dirs(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this throughout the app
settings = Settings()
