"""Tests for TextPatcher."""

from verse_coach.engine.patcher import TextPatcher
from verse_coach.engine.state import SuggestionTrack
from verse_coach.models.suggestion import Suggestion, SuggestionKind


def _s(original: str, corrected: str = "x") -> Suggestion:
    return Suggestion(original_text=original, corrected_text=corrected, kind=SuggestionKind.GRAMMAR)


class TestApply:
    def test_replaces_target(self):
        result = TextPatcher.apply("Eu gosta de poesia.", "Eu gosta", "Eu gosto")
        assert result.applied
        assert result.document == "Eu gosto de poesia."
        assert result.position == 0

    def test_only_first_occurrence_is_patched(self):
        document = "o mar triste, o céu triste"
        result = TextPatcher.apply(document, "triste", "soturno")
        assert result.document == "o mar soturno, o céu triste"
        assert result.position == document.find("triste")

    def test_missing_target_is_noop(self):
        result = TextPatcher.apply("Eu gosto de poesia.", "Eu gosta", "Eu gosto")
        assert not result.applied
        assert result.document == "Eu gosto de poesia."
        assert result.position == -1

    def test_empty_target_is_noop(self):
        result = TextPatcher.apply("texto", "", "algo")
        assert not result.applied
        assert result.document == "texto"

    def test_rest_of_document_untouched(self):
        document = "linha um\nas ondas vem\nlinha três"
        result = TextPatcher.apply(document, "vem", "vêm")
        prefix = document[: document.find("vem")]
        suffix = document[document.find("vem") + len("vem"):]
        assert result.document == prefix + "vêm" + suffix


class TestRevalidate:
    def test_drops_missing_originals(self):
        track = SuggestionTrack.from_suggestions([_s("mar"), _s("céu"), _s("sol")])
        result = TextPatcher.revalidate(track, "o mar e o sol")
        assert [s.original_text for s in result] == ["mar", "sol"]

    def test_keeps_track_when_all_present(self):
        track = SuggestionTrack.from_suggestions([_s("mar")])
        assert TextPatcher.revalidate(track, "o mar") is track

    def test_start_index_protects_prefix(self):
        track = SuggestionTrack.from_suggestions([_s("gosta"), _s("vem"), _s("céu")])
        result = TextPatcher.revalidate(track, "eu gosto, vem", start=1)
        assert [s.original_text for s in result] == ["gosta", "vem"]
