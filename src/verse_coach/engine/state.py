"""Immutable session state shared by the review reducer and the session facade."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from enum import Enum

from verse_coach.engine.exclusions import ExclusionRegistry
from verse_coach.models.suggestion import SessionConfig, Suggestion, SuggestionKind


class ReviewPhase(str, Enum):
    IDLE = "idle"
    FETCHING_GRAMMAR = "fetching_grammar"
    REVIEWING_GRAMMAR = "reviewing_grammar"
    FETCHING_TONE = "fetching_tone"
    REVIEWING_TONE = "reviewing_tone"


class Channel(str, Enum):
    """Logical request channels; each one debounces independently."""

    GRAMMAR = "grammar"
    TONE = "tone"
    RESUGGEST = "resuggest"


class NoticeKind(str, Enum):
    ORACLE_ERROR = "oracle_error"
    OBSOLETE_SUGGESTION = "obsolete_suggestion"
    NO_ALTERNATIVE = "no_alternative"


@dataclass(frozen=True)
class Notice:
    kind: NoticeKind
    title: str
    message: str


@dataclass(frozen=True)
class SuggestionTrack:
    """Ordered suggestion list keyed by original text, with an optional spotlight.

    Grammar review uses the spotlight as its review cursor. Tone review
    leaves it unset and treats the list as a free set.
    """

    items: tuple[Suggestion, ...] = ()
    spotlight: int | None = None
    _keys: dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        keys: dict[str, int] = {}
        for i, s in enumerate(self.items):
            if s.original_text in keys:
                raise ValueError(f"duplicate original text in track: {s.original_text!r}")
            keys[s.original_text] = i
        object.__setattr__(self, "_keys", keys)
        if self.spotlight is not None and not 0 <= self.spotlight < len(self.items):
            raise ValueError(f"spotlight {self.spotlight} out of range for {len(self.items)} items")

    @classmethod
    def from_suggestions(
        cls,
        suggestions: Iterable[Suggestion],
        kind: SuggestionKind | None = None,
    ) -> SuggestionTrack:
        """Build a track, keeping the first suggestion for each original text."""
        seen: set[str] = set()
        items = []
        for s in suggestions:
            if kind is not None and s.kind != kind:
                continue
            if not s.original_text or s.original_text in seen:
                continue
            seen.add(s.original_text)
            items.append(s)
        return cls(items=tuple(items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Suggestion]:
        return iter(self.items)

    def get(self, original_text: str) -> Suggestion | None:
        i = self._keys.get(original_text)
        return None if i is None else self.items[i]

    @property
    def current(self) -> Suggestion | None:
        return None if self.spotlight is None else self.items[self.spotlight]

    def with_spotlight(self, index: int | None) -> SuggestionTrack:
        return replace(self, spotlight=index)

    def replace(self, original_text: str, suggestion: Suggestion) -> SuggestionTrack:
        """Swap the suggestion stored under ``original_text``, keeping order and spotlight."""
        i = self._keys[original_text]
        items = self.items[:i] + (suggestion,) + self.items[i + 1:]
        return SuggestionTrack(items=items, spotlight=self.spotlight)

    def remove(self, original_text: str) -> SuggestionTrack:
        i = self._keys.get(original_text)
        if i is None:
            return self
        items = self.items[:i] + self.items[i + 1:]
        return SuggestionTrack(items=items, spotlight=_shift_spotlight(self.spotlight, [i], len(items)))

    def retain_present_in(self, document: str, start: int = 0) -> SuggestionTrack:
        """Drop suggestions from ``start`` onward whose original text left the document."""
        dropped = [
            i for i, s in enumerate(self.items)
            if i >= start and s.original_text not in document
        ]
        if not dropped:
            return self
        items = tuple(s for i, s in enumerate(self.items) if i not in dropped)
        return SuggestionTrack(items=items, spotlight=_shift_spotlight(self.spotlight, dropped, len(items)))


def _shift_spotlight(spotlight: int | None, removed: list[int], new_len: int) -> int | None:
    if spotlight is None:
        return None
    shifted = spotlight - sum(1 for i in removed if i < spotlight)
    return shifted if shifted < new_len else None


@dataclass(frozen=True)
class SessionState:
    document_text: str = ""
    config: SessionConfig = field(default_factory=SessionConfig)
    grammar: SuggestionTrack = field(default_factory=SuggestionTrack)
    tone: SuggestionTrack = field(default_factory=SuggestionTrack)
    phase: ReviewPhase = ReviewPhase.IDLE
    epoch: int = 0
    exclusions: ExclusionRegistry = field(default_factory=ExclusionRegistry)
    loading: frozenset[Channel] = frozenset()
    notices: tuple[Notice, ...] = ()

    @property
    def review_cursor(self) -> int | None:
        return self.grammar.spotlight

    @property
    def active_grammar_suggestion(self) -> Suggestion | None:
        if self.phase is not ReviewPhase.REVIEWING_GRAMMAR:
            return None
        return self.grammar.current

    def track_for(self, kind: SuggestionKind) -> SuggestionTrack:
        return self.grammar if kind is SuggestionKind.GRAMMAR else self.tone

    def with_track(self, kind: SuggestionKind, track: SuggestionTrack) -> SessionState:
        if kind is SuggestionKind.GRAMMAR:
            return replace(self, grammar=track)
        return replace(self, tone=track)

    def with_notice(self, notice: Notice) -> SessionState:
        return replace(self, notices=self.notices + (notice,))
