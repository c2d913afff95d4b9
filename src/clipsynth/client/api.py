"""Async HTTP client for the ClipSynth backend."""

import logging
import mimetypes
import os
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

import httpx
from pydantic import ValidationError

from clipsynth.client.importer import ImportFailedError, ProgressCallback, VideoImporter
from clipsynth.config import settings
from clipsynth.models import TranscriptSegment, VideoDetails

logger = logging.getLogger(__name__)


class ApiError(ImportFailedError):
    """Raised when the backend rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class _ProgressReader:
    """File wrapper reporting how much of it httpx has consumed."""

    def __init__(self, fh: BinaryIO, total: int, on_progress: ProgressCallback) -> None:
        self._fh = fh
        self._total = total
        self._read = 0
        self._on_progress = on_progress

    def read(self, size: int = -1) -> bytes:
        chunk = self._fh.read(size)
        self._read += len(chunk)
        if self._total:
            self._on_progress(min(100.0, self._read * 100.0 / self._total))
        return chunk

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        pos = self._fh.seek(offset, whence)
        if whence == os.SEEK_SET:
            self._read = pos
        return pos

    def tell(self) -> int:
        return self._fh.tell()

    def fileno(self) -> int:
        return self._fh.fileno()


class ApiImporter(VideoImporter):
    """VideoImporter backed by the HTTP API.

    File uploads report real transfer progress. URL imports report coarse
    milestones (10 before the request, 50 once answered, 100 when accepted).
    """

    def __init__(self, base_url: str | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._base_url = (base_url or settings.api_url).rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(settings.import_timeout, connect=10.0),
        )

    async def __aenter__(self) -> "ApiImporter":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def health(self) -> dict:
        response = await self._request("GET", "/api/health")
        return self._check(response, "Backend health check failed.")

    async def import_file(self, path: Path, on_progress: ProgressCallback) -> VideoDetails:
        logger.info("Uploading %s", path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        try:
            fh = path.open("rb")
        except OSError as e:
            raise ImportFailedError(f"Cannot read {path}: {e.strerror or e}") from e
        with fh:
            total = os.fstat(fh.fileno()).st_size
            reader = _ProgressReader(fh, total, on_progress)
            on_progress(0)
            response = await self._request(
                "POST",
                "/api/videos/upload-file",
                files={"video": (path.name, reader, content_type)},
            )
        on_progress(100)
        return self._video(self._check(response, "Failed to upload file."))

    async def import_url(self, url: str, on_progress: ProgressCallback) -> VideoDetails:
        logger.info("Importing %s", url)
        on_progress(10)
        response = await self._request("POST", "/api/videos/import-youtube", json={"url": url})
        on_progress(50)
        data = self._check(response, "Failed to import from YouTube.")
        on_progress(100)
        return self._video(data)

    async def find_highlights(self, transcript: Sequence[TranscriptSegment]) -> set[str]:
        response = await self._request(
            "POST",
            "/api/highlights/find",
            json={"transcript": [seg.to_wire() for seg in transcript]},
        )
        data = self._check(response, "Failed to find highlights.")
        ids = data.get("highlightIds")
        if not isinstance(ids, list):
            raise ApiError("Malformed highlight response from server.")
        known = {seg.id for seg in transcript}
        return {i for i in ids if i in known}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ApiError(f"Request to {self._base_url}{path} timed out.") from e
        except httpx.HTTPError as e:
            raise ApiError(f"Could not reach ClipSynth backend at {self._base_url}: {e}") from e

    @staticmethod
    def _check(response: httpx.Response, fallback: str) -> dict:
        """Decoded JSON body of a successful response, else ApiError with the server's message."""
        try:
            data = response.json()
        except ValueError:
            data = None
        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(message or fallback, response.status_code)
        if not isinstance(data, dict):
            raise ApiError("Malformed response from server.", response.status_code)
        return data

    @staticmethod
    def _video(data: dict) -> VideoDetails:
        try:
            return VideoDetails.model_validate(data)
        except ValidationError as e:
            raise ApiError(f"Malformed video details from server: {e.error_count()} invalid field(s).") from e
