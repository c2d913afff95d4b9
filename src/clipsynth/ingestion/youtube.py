"""YouTube video import via yt-dlp."""

import json
import logging
import re
from urllib.parse import parse_qs, urlparse
from urllib.request import urlopen

import yt_dlp

from clipsynth.config import settings
from clipsynth.models import TranscriptSegment, VideoDetails, VideoSource
from clipsynth.transcript import MockTranscriptGenerator, TranscriptGenerator

logger = logging.getLogger(__name__)


class InvalidSourceError(ValueError):
    """Raised when user input cannot describe an importable video."""


class ExtractionError(Exception):
    """Raised when video metadata cannot be fetched."""


class YouTubeImporter:
    """Turns a YouTube URL into a VideoDetails record.

    Only metadata is fetched, the media itself is never downloaded.
    The transcript comes from published English captions when available,
    otherwise from the configured TranscriptGenerator.
    """

    _VALID_HOSTS = {
        "youtube.com",
        "www.youtube.com",
        "m.youtube.com",
        "music.youtube.com",
        "gaming.youtube.com",
        "youtu.be",
        "www.youtube-nocookie.com",
    }
    _PATH_PATTERNS = [
        re.compile(r"^/(?:embed|v|shorts|live|e)/([\w-]{11})(?:[/?]|$)"),
    ]
    _ID_PATTERN = re.compile(r"^[\w-]{11}$")

    _LANG_PREFERENCE = ("en", "en-orig", "en-US", "en-GB")

    def __init__(self, transcript_generator: TranscriptGenerator | None = None) -> None:
        self._transcripts = transcript_generator or MockTranscriptGenerator(settings.max_transcript_segments)

    def extract(self, url: str) -> VideoDetails:
        """Fetch metadata and build the transcript for a YouTube video.

        Args:
            url: YouTube video URL in any standard format.

        Returns:
            Populated VideoDetails with source=youtube.

        Raises:
            InvalidSourceError: If the URL is not a YouTube video URL.
            ExtractionError: If the metadata fetch fails.
        """
        video_id = self.parse_video_id(url)
        info = self._fetch_info(url)

        duration = int(info.get("duration") or 0)
        if duration <= 0:
            raise ExtractionError(f"No duration reported for {video_id}; live streams are not supported")
        name = info.get("title") or video_id

        transcript = self._extract_transcript(info)
        if not transcript:
            transcript = self._transcripts.generate(name, duration)

        return VideoDetails(
            id=f"yt_{video_id}",
            name=name,
            duration=duration,
            thumbnail_url=self._best_thumbnail(info, video_id),
            transcript=transcript,
            source=VideoSource.YOUTUBE,
        )

    @classmethod
    def validate_url(cls, url: str) -> bool:
        """True if url points at a single YouTube video."""
        try:
            cls.parse_video_id(url)
        except InvalidSourceError:
            return False
        return True

    @classmethod
    def parse_video_id(cls, url: str) -> str:
        """Extract the 11-character video ID from a YouTube URL.

        Supports youtube.com/watch, youtu.be, /embed/, /v/, /shorts/ and /live/.

        Raises:
            InvalidSourceError: If the URL cannot be parsed.
        """
        if not isinstance(url, str) or not url.strip():
            raise InvalidSourceError("Invalid or missing YouTube URL.")

        parsed = urlparse(url.strip())
        host = (parsed.hostname or "").lower()
        if parsed.scheme not in ("http", "https") or host not in cls._VALID_HOSTS:
            raise InvalidSourceError(f"Not a YouTube URL: {url}")

        if host == "youtu.be":
            candidate = parsed.path.lstrip("/").split("/", 1)[0]
        else:
            candidate = parse_qs(parsed.query).get("v", [""])[0]
            if not candidate:
                for pattern in cls._PATH_PATTERNS:
                    match = pattern.search(parsed.path)
                    if match:
                        candidate = match.group(1)
                        break

        if cls._ID_PATTERN.match(candidate):
            return candidate
        raise InvalidSourceError(f"Could not extract video ID from URL: {url}")

    def _fetch_info(self, url: str) -> dict:
        """Fetch video info dict from yt-dlp without downloading media."""
        ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "socket_timeout": settings.metadata_timeout,
            "writesubtitles": True,
            "writeautomaticsub": True,
            "subtitleslangs": list(self._LANG_PREFERENCE),
            "subtitlesformat": "json3",
            "skip_download": True,
        }
        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(url, download=False)
                if info is None:
                    raise ExtractionError(f"yt-dlp returned no info for: {url}")
                return info
        except yt_dlp.utils.DownloadError as e:
            raise ExtractionError(f"Failed to fetch video info: {e}") from e

    @staticmethod
    def _best_thumbnail(info: dict, video_id: str) -> str:
        """Highest-quality thumbnail; yt-dlp sorts them worst to best."""
        thumbnails = [t for t in (info.get("thumbnails") or []) if t.get("url")]
        if thumbnails:
            return thumbnails[-1]["url"]
        return info.get("thumbnail") or f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"

    def _extract_transcript(self, info: dict) -> list[TranscriptSegment]:
        """Transcript from captions, preferring manual over auto-generated."""
        subtitles = info.get("subtitles") or {}
        auto_captions = info.get("automatic_captions") or {}

        sub_data = self._find_json3(subtitles) or self._find_json3(auto_captions)
        if not sub_data:
            logger.info("No English captions for %s, generating transcript", info.get("id"))
            return []

        return self._parse_json3(sub_data)

    def _find_json3(self, subs: dict) -> dict | None:
        """Find and download json3 subtitle data for the best English variant."""
        for lang in self._LANG_PREFERENCE:
            data = self._get_json3_for_lang(subs, lang)
            if data:
                return data

        # Fallback: any en-* variant
        for lang in subs:
            if lang.startswith("en"):
                data = self._get_json3_for_lang(subs, lang)
                if data:
                    return data

        return None

    def _get_json3_for_lang(self, subs: dict, lang: str) -> dict | None:
        formats = subs.get(lang)
        if not formats:
            return None
        for fmt in formats:
            if fmt.get("ext") == "json3":
                return self._download_json(fmt["url"])
        return None

    def _download_json(self, url: str) -> dict | None:
        try:
            with urlopen(url, timeout=settings.metadata_timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except Exception as e:
            logger.warning("Failed to download caption data: %s", e)
            return None

    def _parse_json3(self, data: dict) -> list[TranscriptSegment]:
        """Parse YouTube json3 captions into TranscriptSegment list.

        YouTube json3 structure:
            {"events": [{"tStartMs": int, "dDurationMs": int, "segs": [{"utf8": str}]}]}

        Events without text or without a positive duration are skipped.
        """
        segments = []
        for event in data.get("events", []):
            segs = event.get("segs")
            if not segs:
                continue

            text = "".join(s.get("utf8", "") for s in segs).strip()
            duration_ms = event.get("dDurationMs", 0)
            if not text or duration_ms <= 0:
                continue

            start = event.get("tStartMs", 0) / 1000.0
            segments.append(TranscriptSegment(
                id=f"seg_{len(segments)}",
                text=text,
                start=start,
                end=start + duration_ms / 1000.0,
            ))

        return segments
