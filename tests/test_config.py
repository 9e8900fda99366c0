"""Tests for config loading and validation."""

import pytest

from verse_coach.config import AppConfig, LLMConfig, StorageConfig, load_config
from verse_coach.models.suggestion import StructureKind, SuggestionMode


class TestConfig:
    def test_defaults(self):
        config = AppConfig()
        assert config.llm.model == "claude-haiku-4-5-20251001"
        assert config.suggestions.debounce_ms == 1500
        assert config.suggestions.suggestion_mode is SuggestionMode.FINAL

    def test_load_config_defaults(self, tmp_path):
        """Loading from non-existent path returns defaults."""
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.llm.timeout == 60

    def test_load_config_from_yaml(self, tmp_path):
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(
            "llm:\n  model: test-model\nsuggestions:\n  debounce_ms: 500\n  mode: continuous\n"
        )
        config = load_config(yaml_path)
        assert config.llm.model == "test-model"
        assert config.suggestions.debounce_ms == 500
        assert config.suggestions.suggestion_mode is SuggestionMode.CONTINUOUS
        # Defaults for unspecified
        assert config.storage.db_path == "~/.verse-coach/documents.db"

    def test_session_defaults(self, tmp_path):
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(
            "suggestions:\n  default_tone: Jubiloso\n  default_structure: poesia\n  default_rhyme: true\n",
            encoding="utf-8",
        )
        defaults = load_config(yaml_path).suggestions.session_defaults()
        assert defaults.tone == "Jubiloso"
        assert defaults.structure is StructureKind.STRICT
        assert defaults.rhyme is True

    def test_storage_resolved_paths(self):
        storage = StorageConfig(db_path="~/docs.db", usage_db_path="~/usage.db")
        assert "~" not in str(storage.resolved_db_path)
        assert "~" not in str(storage.resolved_usage_db_path)

    def test_frozen_config(self):
        config = LLMConfig()
        with pytest.raises(AttributeError):
            config.model = "changed"


class TestConfigValidation:
    def test_invalid_timeout(self, tmp_path):
        yaml = tmp_path / "bad.yaml"
        yaml.write_text("llm:\n  timeout: 0\n")
        with pytest.raises(ValueError, match="timeout"):
            load_config(yaml)

    def test_invalid_temperature(self, tmp_path):
        yaml = tmp_path / "bad.yaml"
        yaml.write_text("llm:\n  temperature: 3\n")
        with pytest.raises(ValueError, match="temperature"):
            load_config(yaml)

    def test_negative_debounce(self, tmp_path):
        yaml = tmp_path / "bad.yaml"
        yaml.write_text("suggestions:\n  debounce_ms: -1\n")
        with pytest.raises(ValueError, match="debounce_ms"):
            load_config(yaml)

    def test_unknown_mode(self, tmp_path):
        yaml = tmp_path / "bad.yaml"
        yaml.write_text("suggestions:\n  mode: gradual\n")
        with pytest.raises(ValueError):
            load_config(yaml)

    def test_unknown_structure(self, tmp_path):
        yaml = tmp_path / "bad.yaml"
        yaml.write_text("suggestions:\n  default_structure: soneto\n")
        with pytest.raises(ValueError):
            load_config(yaml)

    def test_zero_attempts(self, tmp_path):
        yaml = tmp_path / "bad.yaml"
        yaml.write_text("llm:\n  max_attempts: 0\n")
        with pytest.raises(ValueError, match="max_attempts"):
            load_config(yaml)
