"""HTTP API and MCP tools, thin wrappers over ClipSynthService.

The JSON API lives on FastMCP custom routes so one Starlette app serves
both the frontend (``/api/...``, ``/uploads/...``) and MCP clients (``/mcp``).
"""

import logging

from fastmcp import FastMCP
from pydantic import TypeAdapter, ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import FileResponse, JSONResponse

from clipsynth.config import settings
from clipsynth.ingestion.upload import UploadRejectedError
from clipsynth.ingestion.youtube import InvalidSourceError, YouTubeImporter
from clipsynth.models import TranscriptSegment
from clipsynth.service import ClipSynthService, EmptyTranscriptError

logger = logging.getLogger(__name__)

UPLOAD_FAILED = "Failed to process uploaded video."
YOUTUBE_FAILED = "Failed to process YouTube URL. The video might be private or unavailable."
HIGHLIGHTS_FAILED = "Failed to analyze transcript for highlights."

_transcript_adapter = TypeAdapter(list[TranscriptSegment])

mcp = FastMCP(
    name="clipsynth",
    instructions=(
        "ClipSynth imports videos and finds short-form clip hooks. "
        "Use import_youtube to get a video's transcript, then "
        "find_highlights to pick the segments worth clipping."
    ),
)

_service: ClipSynthService | None = None


def _get_service() -> ClipSynthService:
    """Lazy-initialise the service singleton from settings."""
    global _service
    if _service is None:
        settings.ensure_dirs()
        _service = ClipSynthService.from_settings()
    return _service


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _json_body(request: Request) -> dict | None:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _parse_transcript(raw) -> list[TranscriptSegment]:
    """Validate a transcript from a request body.

    Raises:
        EmptyTranscriptError: If it is missing or empty.
        ValidationError: If a segment is malformed.
    """
    if not isinstance(raw, list) or not raw:
        raise EmptyTranscriptError("Transcript is missing or empty.")
    return _transcript_adapter.validate_python(raw)


# --- HTTP API ---------------------------------------------------------------


@mcp.custom_route("/api/health", methods=["GET"])
async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "message": "ClipSynth backend is running!"})


@mcp.custom_route("/api/videos/upload-file", methods=["POST"])
async def upload_file(request: Request) -> JSONResponse:
    """Multipart upload, form field ``video``."""
    try:
        form = await request.form()
    except Exception as e:
        logger.info("Rejected malformed multipart request: %s", e)
        return _error("Malformed upload request.", 400)

    try:
        upload = form.get("video")
        if not isinstance(upload, UploadFile) or not upload.filename:
            return _error("No video file uploaded.", 400)
        video = await run_in_threadpool(
            _get_service().import_upload, upload.filename, upload.content_type, upload.file
        )
        return JSONResponse(video.to_wire())
    except UploadRejectedError as e:
        return _error(str(e), 400)
    except Exception:
        logger.exception("Upload processing failed")
        return _error(UPLOAD_FAILED, 500)
    finally:
        await form.close()


@mcp.custom_route("/api/videos/import-youtube", methods=["POST"])
async def import_youtube_route(request: Request) -> JSONResponse:
    body = await _json_body(request)
    url = body.get("url") if body else None
    if not isinstance(url, str) or not YouTubeImporter.validate_url(url):
        return _error("Invalid or missing YouTube URL.", 400)

    try:
        video = await run_in_threadpool(_get_service().import_youtube, url)
        return JSONResponse(video.to_wire())
    except InvalidSourceError as e:
        return _error(str(e), 400)
    except Exception:
        logger.exception("YouTube import failed: %s", url)
        return _error(YOUTUBE_FAILED, 500)


@mcp.custom_route("/api/highlights/find", methods=["POST"])
async def find_highlights_route(request: Request) -> JSONResponse:
    body = await _json_body(request)
    try:
        transcript = _parse_transcript(body.get("transcript") if body else None)
    except EmptyTranscriptError as e:
        return _error(str(e), 400)
    except ValidationError as e:
        return _error(f"Malformed transcript: {e.error_count()} invalid field(s).", 400)

    try:
        ids = await run_in_threadpool(_get_service().find_highlights, transcript)
        return JSONResponse({"highlightIds": ids})
    except Exception:
        logger.exception("Highlight analysis failed")
        return _error(HIGHLIGHTS_FAILED, 500)


@mcp.custom_route("/uploads/{filename}", methods=["GET"])
async def serve_upload(request: Request):
    path = _get_service().uploads.resolve(request.path_params["filename"])
    if path is None:
        return _error("Not found.", 404)
    return FileResponse(path)


# --- MCP tools ----------------------------------------------------------------


def import_youtube(url: str) -> dict:
    """Import a YouTube video and return its details with a transcript.

    Args:
        url: YouTube video URL (supports youtube.com/watch, youtu.be, /embed/, /shorts/).
    """
    try:
        return _get_service().import_youtube(url).to_wire()
    except InvalidSourceError as e:
        return {"error": str(e)}
    except Exception:
        logger.exception("YouTube import failed: %s", url)
        return {"error": YOUTUBE_FAILED}


def find_highlights(transcript: list[dict]) -> dict:
    """Pick hook-worthy segments from a transcript.

    Args:
        transcript: Segments as returned by import_youtube, each with id, text, start, end.
    """
    try:
        segments = _parse_transcript(transcript)
    except (EmptyTranscriptError, ValidationError) as e:
        return {"error": str(e)}
    try:
        ids = _get_service().find_highlights(segments)
    except Exception:
        logger.exception("Highlight analysis failed")
        return {"error": HIGHLIGHTS_FAILED}
    return {"highlightIds": ids}


mcp.tool(annotations={"readOnlyHint": True, "openWorldHint": True})(import_youtube)
mcp.tool(annotations={"readOnlyHint": True})(find_highlights)


def middleware() -> list[Middleware]:
    """CORS for the browser frontend."""
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    ]


def create_app():
    """Starlette app serving the JSON API, uploads and MCP.

    Builds the service eagerly so a misconfiguration fails at startup.
    """
    _get_service()
    return mcp.http_app(middleware=middleware())
