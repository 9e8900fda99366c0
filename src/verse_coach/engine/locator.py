"""Cursor-to-suggestion lookup for the free-form review surfaces."""

from __future__ import annotations

from collections.abc import Iterable

from verse_coach.models.suggestion import Suggestion


class CursorLocator:
    @staticmethod
    def span_of(document: str, suggestion: Suggestion) -> tuple[int, int] | None:
        start = document.find(suggestion.original_text)
        if start == -1 or not suggestion.original_text:
            return None
        return start, start + len(suggestion.original_text)

    @classmethod
    def active_suggestion(
        cls,
        document: str,
        cursor_offset: int | None,
        suggestions: Iterable[Suggestion],
    ) -> Suggestion | None:
        """Return the first suggestion whose span contains the cursor (both ends inclusive)."""
        if cursor_offset is None:
            return None
        for suggestion in suggestions:
            span = cls.span_of(document, suggestion)
            if span is None:
                continue
            start, end = span
            if start <= cursor_offset <= end:
                return suggestion
        return None

    @classmethod
    def highlight_spans(
        cls,
        document: str,
        suggestions: Iterable[Suggestion],
    ) -> list[tuple[int, int, Suggestion]]:
        """Non-overlapping (start, end, suggestion) spans sorted by position."""
        spans = []
        seen: set[str] = set()
        for suggestion in suggestions:
            if suggestion.original_text in seen:
                continue
            seen.add(suggestion.original_text)
            span = cls.span_of(document, suggestion)
            if span is not None:
                spans.append((span[0], span[1], suggestion))
        spans.sort(key=lambda item: (item[0], -item[1]))

        result: list[tuple[int, int, Suggestion]] = []
        last_end = -1
        for start, end, suggestion in spans:
            if start < last_end:
                continue
            result.append((start, end, suggestion))
            last_end = end
        return result


def current_line(text: str, cursor_offset: int | None) -> str:
    """Return the line of ``text`` that contains ``cursor_offset``."""
    if cursor_offset is None:
        return ""
    cursor_offset = max(0, min(cursor_offset, len(text)))
    line_start = text.rfind("\n", 0, cursor_offset) + 1
    line_end = text.find("\n", cursor_offset)
    if line_end == -1:
        line_end = len(text)
    return text[line_start:line_end]
