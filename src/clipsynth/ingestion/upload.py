"""Storage of uploaded video files."""

import logging
import uuid
from pathlib import Path
from typing import BinaryIO

from clipsynth.config import settings

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


class UploadRejectedError(ValueError):
    """Raised when an uploaded file fails validation."""


class UploadStore:
    """Writes uploads to disk under generated unique filenames.

    Files are streamed in chunks so the size cap is enforced without
    holding the whole upload in memory. A rejected upload leaves no file
    behind.
    """

    def __init__(
        self,
        root: Path | None = None,
        max_bytes: int | None = None,
        allowed_types: list[str] | None = None,
    ) -> None:
        self._root = root or settings.uploads_dir
        self._max_bytes = max_bytes if max_bytes is not None else settings.max_upload_bytes
        self._allowed = settings.allowed_video_types if allowed_types is None else allowed_types

    @property
    def root(self) -> Path:
        return self._root

    def save(self, filename: str, content_type: str | None, stream: BinaryIO) -> Path:
        """Validate and persist an upload.

        Args:
            filename: Name the client gave the file; only its suffix is kept.
            content_type: MIME type declared by the client.
            stream: Readable binary file object.

        Returns:
            Path of the stored file.

        Raises:
            UploadRejectedError: If the type is not allowed, the file is empty
                or larger than the configured limit.
        """
        if self._allowed and (content_type or "").lower() not in self._allowed:
            raise UploadRejectedError(
                f"Unsupported file type {content_type or 'unknown'!r}. "
                f"Allowed: {', '.join(self._allowed)}"
            )

        self._root.mkdir(parents=True, exist_ok=True)
        suffix = Path(filename or "").suffix.lower()[:10]
        target = self._root / f"{uuid.uuid4().hex}{suffix}"

        written = 0
        try:
            with target.open("wb") as out:
                while chunk := stream.read(_CHUNK_SIZE):
                    written += len(chunk)
                    if written > self._max_bytes:
                        raise UploadRejectedError(
                            f"File exceeds the maximum upload size of {self._max_bytes} bytes."
                        )
                    out.write(chunk)
            if written == 0:
                raise UploadRejectedError("Uploaded file is empty.")
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        logger.info("Stored upload %r as %s (%d bytes)", filename, target.name, written)
        return target

    def resolve(self, name: str) -> Path | None:
        """Path of a stored file, or None for unknown or unsafe names."""
        candidate = self._root / name
        if Path(name).name != name or not candidate.is_file():
            return None
        return candidate

    def delete(self, path: Path) -> None:
        path.unlink(missing_ok=True)
