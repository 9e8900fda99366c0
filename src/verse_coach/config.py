"""Application configuration loaded from config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from verse_coach.models.suggestion import SessionConfig, StructureKind, SuggestionMode


@dataclass(frozen=True)
class LLMConfig:
    model: str = "claude-haiku-4-5-20251001"
    temperature: float = 0.2
    max_tokens: int = 4096
    timeout: int = 60
    max_attempts: int = 3

    def __post_init__(self) -> None:
        if self.timeout < 1:
            raise ValueError(f"llm.timeout must be at least 1, got {self.timeout}")
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"llm.temperature must be within 0..1, got {self.temperature}")
        if self.max_attempts < 1:
            raise ValueError(f"llm.max_attempts must be at least 1, got {self.max_attempts}")


@dataclass(frozen=True)
class SuggestionsConfig:
    mode: str = SuggestionMode.FINAL.value
    debounce_ms: int = 1500
    default_tone: str = "Melancólico"
    default_structure: str = StructureKind.LOOSE.value
    default_rhyme: bool = False

    def __post_init__(self) -> None:
        if self.debounce_ms < 0:
            raise ValueError(f"suggestions.debounce_ms must not be negative, got {self.debounce_ms}")
        # Raises ValueError on unknown values.
        SuggestionMode(self.mode)
        StructureKind(self.default_structure)

    @property
    def suggestion_mode(self) -> SuggestionMode:
        return SuggestionMode(self.mode)

    def session_defaults(self) -> SessionConfig:
        return SessionConfig(
            tone=self.default_tone,
            structure=StructureKind(self.default_structure),
            rhyme=self.default_rhyme,
        )


@dataclass(frozen=True)
class StorageConfig:
    db_path: str = "~/.verse-coach/documents.db"
    usage_db_path: str = "~/.verse-coach/usage.db"

    @property
    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()

    @property
    def resolved_usage_db_path(self) -> Path:
        return Path(self.usage_db_path).expanduser()


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    suggestions: SuggestionsConfig = field(default_factory=SuggestionsConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        suggestions=SuggestionsConfig(**raw.get("suggestions", {})),
        storage=StorageConfig(**raw.get("storage", {})),
    )
