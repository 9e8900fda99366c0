"""Tests for ExclusionRegistry."""

from verse_coach.engine.exclusions import ExclusionRegistry


class TestExclusionRegistry:
    def test_record_accumulates_in_order(self):
        registry = ExclusionRegistry().record("triste", "soturno").record("triste", "lúgubre")
        assert registry.get("triste") == ("soturno", "lúgubre")

    def test_record_ignores_duplicates_and_blanks(self):
        registry = ExclusionRegistry().record("triste", "soturno")
        assert registry.record("triste", "soturno") is registry
        assert registry.record("triste", "  ") is registry

    def test_immutable(self):
        empty = ExclusionRegistry()
        empty.record("triste", "soturno")
        assert empty.get("triste") == ()
        assert len(empty) == 0

    def test_toggle_adds_then_removes(self):
        registry = ExclusionRegistry().toggle("triste", "noite")
        assert "noite" in registry.get("triste")
        registry = registry.toggle("triste", "noite")
        assert not "noite" in registry.get("triste")
        assert "triste" not in registry

    def test_request_phrases_includes_current_correction(self):
        registry = ExclusionRegistry().record("triste", "soturno").toggle("triste", "breu")
        assert registry.request_phrases("triste", "melancólico") == ["soturno", "breu", "melancólico"]

    def test_request_phrases_deduplicates_current(self):
        registry = ExclusionRegistry().record("triste", "soturno")
        assert registry.request_phrases("triste", "soturno") == ["soturno"]

    def test_discard(self):
        registry = ExclusionRegistry().record("triste", "soturno").record("mar", "oceano")
        registry = registry.discard("triste")
        assert "triste" not in registry
        assert registry.get("mar") == ("oceano",)

    def test_prune_keeps_live_or_present_keys(self):
        registry = (
            ExclusionRegistry()
            .record("triste", "soturno")
            .record("mar", "oceano")
            .record("sol", "astro")
        )
        pruned = registry.prune("o mar calmo", live_keys=["sol"])
        assert len(pruned) == 2
        assert "mar" in pruned and "sol" in pruned
        assert "triste" not in pruned

    def test_prune_without_changes_returns_same_instance(self):
        registry = ExclusionRegistry().record("mar", "oceano")
        assert registry.prune("o mar") is registry
