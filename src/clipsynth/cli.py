"""CLI interface, thin wrapper over ClipSynthService, the HTTP server and ImportSession."""

import asyncio
import json
import logging
from pathlib import Path

import typer
from pydantic import TypeAdapter

from clipsynth.client.api import ApiError, ApiImporter
from clipsynth.client.importer import VideoImporter
from clipsynth.client.mock import MockImporter
from clipsynth.client.session import ImportSession
from clipsynth.config import settings
from clipsynth.highlights import KeywordHighlightFinder, ModelHighlightFinder, ordered
from clipsynth.llm import LLMClient
from clipsynth.models import TranscriptSegment, UploadStatus, VideoDetails

app = typer.Typer(
    name="clipsynth",
    help="Import a video or YouTube link, get a transcript and find short-clip hooks.",
    no_args_is_help=True,
)


def _get_importer(mock: bool, api_url: str | None) -> VideoImporter:
    """Importer for the import command: the HTTP API or the offline mock."""
    if mock:
        return MockImporter()
    return ApiImporter(base_url=api_url)


def _status_printer():
    """on_change listener echoing each status change once."""
    last = {"status": None}

    def _print(session: ImportSession) -> None:
        if session.status is last["status"]:
            return
        last["status"] = session.status
        if session.status is UploadStatus.UPLOADING:
            typer.echo("⏫ Uploading...")
        elif session.status is UploadStatus.PROCESSING:
            typer.echo("⚙️  Processing video... generating transcript.")

    return _print


def _load_transcript(path: Path) -> list[TranscriptSegment]:
    """Read a transcript from a VideoDetails JSON file or a bare segment array."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        return list(VideoDetails.model_validate(data).transcript)
    return TypeAdapter(list[TranscriptSegment]).validate_python(data)


@app.command()
def serve(
    stdio: bool = typer.Option(False, "--stdio", help="Serve only the MCP tools over stdio."),
    host: str = typer.Option(settings.host, "--host", help="Host to bind to."),
    port: int = typer.Option(settings.port, "--port", help="Port to bind to."),
) -> None:
    """Start the ClipSynth backend (JSON API + MCP on /mcp)."""
    from clipsynth.server import _get_service, mcp, middleware
    from clipsynth.service import ConfigurationError

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        _get_service()
    except ConfigurationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)

    if stdio:
        typer.echo("Starting ClipSynth MCP server (stdio)...", err=True)
        mcp.run(transport="stdio")
        return

    typer.echo(f"🚀 ClipSynth backend listening at http://{host}:{port}")
    mcp.run(transport="streamable-http", host=host, port=port, middleware=middleware())


@app.command()
def health(
    api_url: str = typer.Option(settings.api_url, "--api-url", help="Backend base URL."),
) -> None:
    """Check that the backend is up."""

    async def _run() -> dict:
        async with ApiImporter(base_url=api_url) as api:
            return await api.health()

    try:
        data = asyncio.run(_run())
    except ApiError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"✅ {data.get('message', data.get('status', 'ok'))}")


@app.command(name="import")
def import_video(
    source: str = typer.Argument(..., help="Path to a video file or a YouTube URL."),
    highlights: bool = typer.Option(False, "--highlights", "-H", help="Also find hook segments."),
    mock: bool = typer.Option(False, "--mock", help="Use the offline mock importer."),
    api_url: str | None = typer.Option(None, "--api-url", help="Backend base URL."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Save the video details as JSON."),
) -> None:
    """Import a video and print its transcript."""
    is_url = source.startswith(("http://", "https://"))
    target: Path | str = source if is_url else Path(source)
    if not is_url and not mock and not target.is_file():
        typer.echo(f"❌ File not found: {source}", err=True)
        raise typer.Exit(code=1)

    importer = _get_importer(mock, api_url)
    session = ImportSession(importer, on_change=_status_printer())

    async def _run() -> None:
        try:
            await session.start(target)
            if highlights and session.status is UploadStatus.SUCCESS:
                typer.echo("🔍 Finding highlights...")
                await session.find_highlights()
        finally:
            if isinstance(importer, ApiImporter):
                await importer.aclose()

    asyncio.run(_run())

    if session.status is UploadStatus.ERROR:
        typer.echo(f"❌ {session.error}", err=True)
        raise typer.Exit(code=1)

    video = session.result
    mins, secs = divmod(int(video.duration), 60)
    typer.echo(f"✅ Imported: {video.name}")
    typer.echo(f"   ID:        {video.id}")
    typer.echo(f"   Source:    {video.source.value}")
    typer.echo(f"   Duration:  {mins}m {secs}s")
    typer.echo(f"   Thumbnail: {video.thumbnail_url}")
    if video.video_url:
        typer.echo(f"   Video:     {video.video_url}")
    typer.echo(f"   Segments:  {len(video.transcript)}\n")
    for seg in video.transcript:
        mark = "⭐" if seg.id in session.highlights else "  "
        m, s = divmod(int(seg.start), 60)
        typer.echo(f" {mark} [{m:02d}:{s:02d}] {seg.text}")

    if output:
        output.write_text(json.dumps(video.to_wire(), indent=2), encoding="utf-8")
        typer.echo(f"\n💾 Saved: {output}")


@app.command(name="highlights")
def find_highlights(
    path: Path = typer.Argument(..., help="VideoDetails JSON (from import -o) or a transcript array."),
    model: bool = typer.Option(False, "--model", help="Use the LLM instead of keyword matching."),
) -> None:
    """Find hook segments in a saved transcript, locally."""
    try:
        transcript = _load_transcript(path)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Cannot read transcript: {e}", err=True)
        raise typer.Exit(code=1)

    if model:
        llm = LLMClient()
        if not llm.available:
            typer.echo("❌ --model needs an LLM API key (ANTHROPIC_API_KEY, OPENAI_API_KEY or GOOGLE_API_KEY).", err=True)
            raise typer.Exit(code=1)
        finder = ModelHighlightFinder(llm)
    else:
        finder = KeywordHighlightFinder()

    ids = ordered(transcript, finder.find_highlights(transcript))
    if not ids:
        typer.echo("No highlights found.")
        return
    by_id = {seg.id: seg for seg in transcript}
    for i in ids:
        seg = by_id[i]
        m, s = divmod(int(seg.start), 60)
        typer.echo(f"  ⭐ {i} [{m:02d}:{s:02d}] {seg.text}")
