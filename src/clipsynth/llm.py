"""LLM integration via LiteLLM for transcript and highlight generation."""

import json
import logging
import os

import litellm

from clipsynth.config import settings
from clipsynth.models import TranscriptSegment

logger = logging.getLogger(__name__)

# Suppress LiteLLM's verbose logging
litellm.suppress_debug_info = True


class LLMError(Exception):
    """Raised when an LLM operation fails."""


class LLMClient:
    """Thin wrapper over LiteLLM.

    Auto-detects available API keys and uses the configured
    default model. Callers decide how to degrade when it fails.
    """

    _KEY_TO_MODEL = {
        "ANTHROPIC_API_KEY": "anthropic/claude-sonnet-4-20250514",
        "OPENAI_API_KEY": "gpt-4o",
        "GOOGLE_API_KEY": "gemini/gemini-2.0-flash",
    }

    def __init__(self, model: str | None = None, timeout: float | None = None) -> None:
        """Initialize LLM client.

        Args:
            model: LiteLLM model string. If None, auto-detects from
                   available API keys or falls back to settings.default_model.
            timeout: Per-request timeout in seconds (settings.llm_timeout by default).
        """
        self._model = model or self._detect_model()
        self._timeout = timeout if timeout is not None else settings.llm_timeout

    @property
    def model(self) -> str:
        return self._model

    @property
    def available(self) -> bool:
        """Check if any LLM provider is configured."""
        return any(os.environ.get(key) for key in self._KEY_TO_MODEL)

    def find_highlights(self, transcript: list[TranscriptSegment]) -> list[str]:
        """Ask the model which segments make good short-form hooks.

        Returns:
            Segment IDs exactly as the model emitted them. Callers must
            filter them against the transcript.

        Raises:
            LLMError: If the request fails or the answer is not a JSON array of strings.
        """
        lines = "\n".join(
            json.dumps({"id": seg.id, "text": seg.text}, ensure_ascii=False)
            for seg in transcript
        )
        prompt = (
            "You are an editor picking hooks for short-form clips (TikTok, Reels, Shorts). "
            "Below is a video transcript, one JSON object per line. Pick the segments most "
            "likely to grab and retain a viewer's attention.\n\n"
            f"{lines}\n\n"
            "Return ONLY a JSON array of the chosen segment ids, e.g. [\"seg_3\", \"seg_7\"]. "
            "Use ids from the transcript only. No explanation, no markdown."
        )
        items = self._parse_json_array(self._complete(prompt))
        if not all(isinstance(item, str) for item in items):
            raise LLMError("Highlight response must be an array of strings")
        return items

    def generate_transcript(self, name: str, duration: float, max_segments: int) -> list:
        """Ask the model for a plausible timed transcript.

        Returns:
            The raw decoded JSON array. Items are not validated here.

        Raises:
            LLMError: If the request fails or the answer is not a JSON array.
        """
        prompt = (
            "You generate transcripts for a video editing demo. "
            f"Write a plausible spoken transcript for a video titled {name!r} "
            f"lasting {duration:.0f} seconds, split into at most {max_segments} segments.\n\n"
            "Return ONLY a JSON array of objects with keys "
            "\"id\" (\"seg_0\", \"seg_1\", ...), \"text\", \"start\" and \"end\" (seconds, "
            "end > start, within the video duration). No explanation, no markdown."
        )
        return self._parse_json_array(self._complete(prompt))

    def _complete(self, prompt: str, max_tokens: int = 4096) -> str:
        """Send a completion request to the configured LLM."""
        if not self.available:
            raise LLMError(
                "No LLM API key found. Set one of: "
                + ", ".join(self._KEY_TO_MODEL.keys())
            )
        try:
            response = litellm.completion(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.2,
                max_tokens=max_tokens,
                timeout=self._timeout,
            )
            return response.choices[0].message.content.strip()
        except Exception as e:
            raise LLMError(f"LLM request failed ({self._model}): {e}") from e

    def _detect_model(self) -> str:
        """Auto-detect the best available model from environment keys."""
        for key, model in self._KEY_TO_MODEL.items():
            if os.environ.get(key):
                logger.info("Auto-detected LLM provider: %s -> %s", key, model)
                return model
        return settings.default_model

    @staticmethod
    def _parse_json_array(response: str) -> list:
        """Parse a JSON array from an LLM response."""
        # Strip markdown fences if present
        text = response.strip()
        if text.startswith("```"):
            text = text.split("\n", 1)[-1].rsplit("```", 1)[0].strip()
        try:
            items = json.loads(text)
        except json.JSONDecodeError:
            items = None
        if isinstance(items, list):
            return items
        raise LLMError(f"Failed to parse JSON array from LLM response: {response[:100]}")
