"""Highlight ("hook") detection over a transcript."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from clipsynth.llm import LLMClient, LLMError
from clipsynth.models import TranscriptSegment

logger = logging.getLogger(__name__)

DEFAULT_HOOKS = ("special", "game-changer", "improvement", "gorgeous")


class HighlightFinder(ABC):
    """Selects the transcript segments worth turning into short clips.

    Implementations must be pure with respect to the transcript and may only
    return IDs present in it.
    """

    @abstractmethod
    def find_highlights(self, transcript: Sequence[TranscriptSegment]) -> set[str]:
        """Return the IDs of hook-worthy segments."""


class KeywordHighlightFinder(HighlightFinder):
    """Case-insensitive substring match against a fixed hook vocabulary.

    When nothing matches and the transcript has at least three segments,
    the second segment is picked so the editor always has a starting point.
    """

    def __init__(self, hooks: Sequence[str] = DEFAULT_HOOKS) -> None:
        self._hooks = tuple(h.lower() for h in hooks)

    def find_highlights(self, transcript: Sequence[TranscriptSegment]) -> set[str]:
        found = {
            seg.id
            for seg in transcript
            if any(hook in seg.text.lower() for hook in self._hooks)
        }
        if not found and len(transcript) > 2:
            found.add(transcript[1].id)
        return found


class ModelHighlightFinder(HighlightFinder):
    """Delegates the choice to an LLM and keeps only IDs the transcript knows."""

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    def find_highlights(self, transcript: Sequence[TranscriptSegment]) -> set[str]:
        if not transcript:
            return set()
        try:
            answer = self._llm.find_highlights(list(transcript))
        except LLMError as e:
            logger.warning("Highlight detection failed: %s", e)
            return set()

        known = {seg.id for seg in transcript}
        unknown = [i for i in answer if i not in known]
        if unknown:
            logger.warning("Discarding %d fabricated segment id(s): %s", len(unknown), unknown[:5])
        return {i for i in answer if i in known}


def ordered(transcript: Sequence[TranscriptSegment], ids: set[str]) -> list[str]:
    """Highlight IDs in transcript order, for stable serialization."""
    return [seg.id for seg in transcript if seg.id in ids]
