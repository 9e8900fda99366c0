"""Errors raised by the suggestion engine to its host."""

from __future__ import annotations


class SessionError(Exception):
    """An action referenced a suggestion or phase the session is not in."""


class UnknownSuggestionError(SessionError):
    def __init__(self, original_text: str):
        super().__init__(f"No pending suggestion for {original_text!r}")
        self.original_text = original_text
