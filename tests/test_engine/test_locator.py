"""Tests for CursorLocator and the current-line helper."""

import pytest

from verse_coach.engine.locator import CursorLocator, current_line
from verse_coach.models.suggestion import Suggestion, SuggestionKind

DOCUMENT = "A noite cai triste sobre o mar"


def _s(original: str) -> Suggestion:
    return Suggestion(original_text=original, corrected_text="x", kind=SuggestionKind.TONE)


class TestActiveSuggestion:
    @pytest.mark.parametrize("offset", [12, 15, 18])
    def test_inside_and_on_boundaries(self, offset):
        # "triste" spans 12..18
        found = CursorLocator.active_suggestion(DOCUMENT, offset, [_s("triste")])
        assert found is not None
        assert found.original_text == "triste"

    @pytest.mark.parametrize("offset", [11, 19])
    def test_outside_span(self, offset):
        assert CursorLocator.active_suggestion(DOCUMENT, offset, [_s("triste")]) is None

    def test_none_cursor(self):
        assert CursorLocator.active_suggestion(DOCUMENT, None, [_s("triste")]) is None

    def test_skips_suggestions_not_in_document(self):
        found = CursorLocator.active_suggestion(DOCUMENT, 27, [_s("céu"), _s("mar")])
        assert found.original_text == "mar"

    def test_first_matching_suggestion_wins(self):
        found = CursorLocator.active_suggestion(DOCUMENT, 14, [_s("cai triste"), _s("triste")])
        assert found.original_text == "cai triste"


class TestHighlightSpans:
    def test_sorted_and_non_overlapping(self):
        spans = CursorLocator.highlight_spans(
            DOCUMENT, [_s("mar"), _s("noite cai"), _s("cai triste"), _s("ausente")]
        )
        assert [(start, end, s.original_text) for start, end, s in spans] == [
            (2, 11, "noite cai"),
            (27, 30, "mar"),
        ]


class TestCurrentLine:
    TEXT = "primeiro verso\nsegundo verso\nterceiro"

    def test_middle_line(self):
        assert current_line(self.TEXT, 20) == "segundo verso"

    def test_first_line(self):
        assert current_line(self.TEXT, 0) == "primeiro verso"

    def test_cursor_at_end(self):
        assert current_line(self.TEXT, len(self.TEXT)) == "terceiro"

    def test_cursor_on_newline_belongs_to_previous_line(self):
        assert current_line(self.TEXT, self.TEXT.find("\n")) == "primeiro verso"

    def test_none_cursor(self):
        assert current_line(self.TEXT, None) == ""
