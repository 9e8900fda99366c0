"""Per-span memory of alternatives the oracle must not propose again."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExclusionRegistry:
    """Maps an original span to the ordered phrases already rejected for it.

    Instances are never mutated; every change returns a new registry.
    """

    _entries: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def get(self, original_text: str) -> tuple[str, ...]:
        return self._entries.get(original_text, ())

    def __contains__(self, original_text: object) -> bool:
        return original_text in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, original_text: str, phrase: str) -> ExclusionRegistry:
        phrase = phrase.strip()
        current = self.get(original_text)
        if not phrase or phrase in current:
            return self
        return self._with(original_text, current + (phrase,))

    def toggle(self, original_text: str, phrase: str) -> ExclusionRegistry:
        """Add ``phrase`` to the span's exclusions, or remove it if already there."""
        phrase = phrase.strip()
        if not phrase:
            return self
        current = self.get(original_text)
        if phrase in current:
            return self._with(original_text, tuple(p for p in current if p != phrase))
        return self._with(original_text, current + (phrase,))

    def request_phrases(self, original_text: str, current_correction: str = "") -> list[str]:
        """Phrases to send with a resuggest call: accumulated ones plus the one on screen."""
        phrases = list(self.get(original_text))
        current_correction = current_correction.strip()
        if current_correction and current_correction not in phrases:
            phrases.append(current_correction)
        return phrases

    def discard(self, original_text: str) -> ExclusionRegistry:
        if original_text not in self._entries:
            return self
        entries = dict(self._entries)
        del entries[original_text]
        return ExclusionRegistry(entries)

    def prune(self, document: str, live_keys: Iterable[str] = ()) -> ExclusionRegistry:
        """Forget spans that are neither suggested anymore nor present in ``document``."""
        live = set(live_keys)
        entries = {
            k: v for k, v in self._entries.items()
            if k in live or k in document
        }
        if len(entries) == len(self._entries):
            return self
        return ExclusionRegistry(entries)

    def _with(self, original_text: str, phrases: tuple[str, ...]) -> ExclusionRegistry:
        entries = dict(self._entries)
        if phrases:
            entries[original_text] = phrases
        else:
            entries.pop(original_text, None)
        return ExclusionRegistry(entries)
