"""Data models for the verse coach suggestion engine."""

from verse_coach.models.document import StoredDocument
from verse_coach.models.oracle import (
    OracleError,
    OracleErrorKind,
    OracleRequest,
    OracleResult,
)
from verse_coach.models.suggestion import (
    SessionConfig,
    StructureKind,
    Suggestion,
    SuggestionKind,
    SuggestionMode,
    SuggestionScope,
)

__all__ = [
    "OracleError",
    "OracleErrorKind",
    "OracleRequest",
    "OracleResult",
    "SessionConfig",
    "StoredDocument",
    "StructureKind",
    "Suggestion",
    "SuggestionKind",
    "SuggestionMode",
    "SuggestionScope",
]
