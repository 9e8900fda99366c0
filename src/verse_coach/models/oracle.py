"""Wire types exchanged with the text-analysis oracle."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from verse_coach.models.suggestion import (
    SessionConfig,
    StructureKind,
    Suggestion,
    SuggestionScope,
)


class OracleErrorKind(str, Enum):
    UNAVAILABLE = "unavailable"  # upstream overloaded or rate limited
    MALFORMED = "malformed"      # response did not match the expected shape
    NETWORK = "network"


class OracleError(BaseModel):
    kind: OracleErrorKind
    message: str = ""


class OracleRequest(BaseModel):
    text: str
    tone: str
    structure: StructureKind
    rhyme: bool
    scope: SuggestionScope
    excluded_phrases: list[str] = Field(default_factory=list)

    @classmethod
    def from_config(
        cls,
        text: str,
        config: SessionConfig,
        scope: SuggestionScope,
        excluded_phrases: list[str] | None = None,
    ) -> OracleRequest:
        return cls(
            text=text,
            tone=config.tone,
            structure=config.structure,
            rhyme=config.rhyme,
            scope=scope,
            excluded_phrases=list(excluded_phrases or []),
        )


class OracleResult(BaseModel):
    """Normalized oracle response. An error result carries no suggestions."""

    suggestions: list[Suggestion] = Field(default_factory=list)
    error: OracleError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, kind: OracleErrorKind, message: str = "") -> OracleResult:
        return cls(error=OracleError(kind=kind, message=message))
