"""Transcript generation for imported videos."""

import logging
from abc import ABC, abstractmethod

from pydantic import ValidationError

from clipsynth.llm import LLMClient, LLMError
from clipsynth.models import TranscriptSegment

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Transcript unavailable for this video."


class TranscriptGenerator(ABC):
    """Produces a timed transcript for a video the user imported."""

    @abstractmethod
    def generate(self, name: str, duration: float) -> list[TranscriptSegment]:
        """Return an ordered transcript. Never raises for upstream failures."""


class MockTranscriptGenerator(TranscriptGenerator):
    """Fabricates a transcript from a fixed script, stretched over the video duration.

    Each sentence lasts ``max(3, len(text) / 10)`` seconds followed by a
    half-second pause. Generation stops at the end of the video or after
    ``max_segments`` segments, whichever comes first.
    """

    SENTENCES = (
        "Hello everyone and welcome back to the channel.",
        "Today, we're going to unbox something truly special.",
        "This is the new gadget everyone has been talking about.",
        "Let's see what's inside the box.",
        "First impressions? The packaging is very premium.",
        "And here it is, the device itself feels incredibly well-built.",
        "The screen is absolutely gorgeous, with vibrant colors.",
        "I can't wait to turn this on and test out the performance.",
        "They say the camera is a huge improvement over the last generation.",
        "We'll be putting that to the test in just a moment.",
        "Make sure you subscribe so you don't miss our full review.",
        "This could be a game-changer for content creators.",
        "The battery life is also supposed to be excellent.",
        "What do you guys think? Let me know in the comments below.",
        "Thanks for watching, and we'll see you in the next one!",
    )
    GAP = 0.5

    def __init__(self, max_segments: int = 50) -> None:
        self._max_segments = max_segments

    def generate(self, name: str, duration: float) -> list[TranscriptSegment]:
        segments: list[TranscriptSegment] = []
        current = 0.0
        while current < duration and len(segments) < self._max_segments:
            n = len(segments)
            text = self.SENTENCES[n % len(self.SENTENCES)]
            length = max(3.0, len(text) / 10)
            segments.append(TranscriptSegment(id=f"seg_{n}", text=text, start=current, end=current + length))
            current += length + self.GAP
        return segments


class ModelTranscriptGenerator(TranscriptGenerator):
    """Asks an LLM for the transcript and validates every item it returns.

    Ill-formed items and duplicate IDs are dropped. If the request fails or
    nothing usable survives, a single placeholder segment covering the
    whole video is returned instead.
    """

    def __init__(self, llm: LLMClient, max_segments: int = 50) -> None:
        self._llm = llm
        self._max_segments = max_segments

    def generate(self, name: str, duration: float) -> list[TranscriptSegment]:
        try:
            raw = self._llm.generate_transcript(name, duration, self._max_segments)
        except LLMError as e:
            logger.warning("Transcript generation failed for %r: %s", name, e)
            return [placeholder_segment(duration)]

        segments = self._validate(raw)
        if not segments:
            logger.warning("Model returned no usable transcript segments for %r", name)
            return [placeholder_segment(duration)]
        return segments[: self._max_segments]

    @staticmethod
    def _validate(raw: list) -> list[TranscriptSegment]:
        segments = []
        seen: set[str] = set()
        for item in raw:
            if not isinstance(item, dict):
                continue
            try:
                seg = TranscriptSegment.model_validate(item)
            except ValidationError:
                logger.debug("Dropping malformed transcript item: %r", item)
                continue
            if seg.id in seen:
                continue
            seen.add(seg.id)
            segments.append(seg)
        return segments


def placeholder_segment(duration: float) -> TranscriptSegment:
    """Single segment standing in for a transcript that could not be produced."""
    return TranscriptSegment(id="seg_0", text=PLACEHOLDER_TEXT, start=0.0, end=max(duration, 1.0))
