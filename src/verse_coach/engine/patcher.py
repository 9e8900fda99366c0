"""Applies accepted corrections to the document by content search."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from verse_coach.engine.state import SuggestionTrack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatchResult:
    document: str
    applied: bool
    position: int = -1


class TextPatcher:
    """Replaces the first occurrence of a suggestion's original text.

    Repeated substrings are not disambiguated: only the first occurrence is
    ever patched.
    """

    @staticmethod
    def apply(document: str, original_text: str, corrected_text: str) -> PatchResult:
        if not original_text:
            return PatchResult(document=document, applied=False)
        position = document.find(original_text)
        if position == -1:
            logger.debug("Patch target not found: %r", original_text)
            return PatchResult(document=document, applied=False)
        patched = document[:position] + corrected_text + document[position + len(original_text):]
        return PatchResult(document=patched, applied=True, position=position)

    @staticmethod
    def revalidate(track: SuggestionTrack, document: str, start: int = 0) -> SuggestionTrack:
        """Drop suggestions (from index ``start``) whose original text is gone."""
        revalidated = track.retain_present_in(document, start=start)
        dropped = len(track) - len(revalidated)
        if dropped:
            logger.debug("Dropped %d suggestion(s) no longer present in the document", dropped)
        return revalidated
