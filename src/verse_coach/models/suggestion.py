"""Pydantic models for suggestions and the writer's session settings."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SuggestionKind(str, Enum):
    GRAMMAR = "grammar"
    TONE = "tone"


class SuggestionScope(str, Enum):
    """Which suggestion track an oracle request asks for."""

    GRAMMAR = "grammar"
    TONE = "tone"
    ALL = "all"

    @classmethod
    def for_kind(cls, kind: SuggestionKind) -> SuggestionScope:
        return cls(kind.value)


class StructureKind(str, Enum):
    LOOSE = "poema"   # free verse, flexible punctuation
    STRICT = "poesia"  # metric and stanza conventions are enforced


class SuggestionMode(str, Enum):
    FINAL = "final"            # explicit "generate" action
    CONTINUOUS = "continuous"  # debounced fetch while typing


class Suggestion(BaseModel):
    """One proposed edit, identified by the text it targets."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_text: str = Field(alias="originalText")
    corrected_text: str = Field(alias="correctedText")
    explanation: str = ""
    kind: SuggestionKind = Field(alias="type")

    def rekeyed(self, original_text: str, kind: SuggestionKind) -> Suggestion:
        """Return a copy pinned to the given span and track."""
        return self.model_copy(update={"original_text": original_text, "kind": kind})


class SessionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    tone: str = "Melancólico"
    structure: StructureKind = StructureKind.LOOSE
    rhyme: bool = False
