"""SuggestionSession: the aggregate root hosts talk to.

The session owns the current :class:`SessionState`, feeds every user action
and oracle response through :func:`transition`, and launches the oracle
calls each new phase requires. Action methods return immediately; oracle
calls run as tasks on the running event loop and re-enter the session when
they resolve. Use :meth:`wait_idle` to await them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from verse_coach.clients.oracle_client import OracleClient
from verse_coach.engine.coordinator import RequestCoordinator
from verse_coach.engine.errors import UnknownSuggestionError
from verse_coach.engine.locator import CursorLocator
from verse_coach.engine.review import (
    ConfigChanged,
    DocumentEdited,
    DocumentReset,
    Event,
    ExcludedWordToggled,
    GenerateRequested,
    GrammarFetched,
    ResuggestReceived,
    ResuggestRequested,
    SuggestionAccepted,
    SuggestionDismissed,
    ToneFetched,
    transition,
)
from verse_coach.engine.scheduler import AsyncioScheduler, Scheduler
from verse_coach.engine.state import Channel, Notice, ReviewPhase, SessionState
from verse_coach.models.oracle import OracleRequest, OracleResult
from verse_coach.models.suggestion import (
    SessionConfig,
    Suggestion,
    SuggestionKind,
    SuggestionMode,
    SuggestionScope,
)

logger = logging.getLogger(__name__)


class SuggestionSession:
    def __init__(
        self,
        oracle: OracleClient,
        *,
        text: str = "",
        config: SessionConfig | None = None,
        mode: SuggestionMode = SuggestionMode.FINAL,
        debounce_ms: int = 1500,
        scheduler: Scheduler | None = None,
        on_change: Callable[[SessionState], None] | None = None,
        on_notice: Callable[[Notice], None] | None = None,
    ):
        self._state = SessionState(document_text=text, config=config or SessionConfig())
        self.mode = mode
        self.debounce_ms = debounce_ms
        self.on_change = on_change
        self.on_notice = on_notice
        self._notices: list[Notice] = []
        self.coordinator = RequestCoordinator(
            oracle,
            scheduler or AsyncioScheduler(),
            current_epoch=lambda: self._state.epoch,
        )

    # --- Read side ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def document_text(self) -> str:
        return self._state.document_text

    @property
    def config(self) -> SessionConfig:
        return self._state.config

    @property
    def phase(self) -> ReviewPhase:
        return self._state.phase

    @property
    def epoch(self) -> int:
        return self._state.epoch

    @property
    def grammar_suggestions(self) -> list[Suggestion]:
        return list(self._state.grammar)

    @property
    def tone_suggestions(self) -> list[Suggestion]:
        return list(self._state.tone)

    @property
    def review_cursor(self) -> int | None:
        return self._state.review_cursor

    @property
    def active_grammar_suggestion(self) -> Suggestion | None:
        return self._state.active_grammar_suggestion

    def is_loading(self, channel: Channel | None = None) -> bool:
        if channel is None:
            return bool(self._state.loading)
        return channel in self._state.loading

    def excluded_phrases(self, original_text: str) -> list[str]:
        return list(self._state.exclusions.get(original_text))

    def suggestion_at(
        self,
        cursor_offset: int | None,
        kind: SuggestionKind = SuggestionKind.TONE,
    ) -> Suggestion | None:
        """Suggestion under the cursor on a free-review surface."""
        return CursorLocator.active_suggestion(
            self._state.document_text,
            cursor_offset,
            self._state.track_for(kind),
        )

    def drain_notices(self) -> list[Notice]:
        notices, self._notices = self._notices, []
        return notices

    # --- Write side ---

    def dispatch(self, event: Event) -> SessionState:
        previous = self._state
        state = transition(previous, event)
        if state.notices:
            fresh = state.notices
            state = replace(state, notices=())
            self._state = state
            for notice in fresh:
                logger.info("Notice: %s - %s", notice.title, notice.message)
                self._notices.append(notice)
                if self.on_notice:
                    self.on_notice(notice)
        else:
            self._state = state

        if state is not previous:
            if self.on_change:
                self.on_change(state)
            self._after_transition(previous, state)
        return state

    def edit_text(self, text: str) -> None:
        epoch = self._state.epoch
        state = self.dispatch(DocumentEdited(text))
        # An unchanged text keeps the current review.
        if state.epoch == epoch:
            return
        if self.mode is SuggestionMode.CONTINUOUS and state.document_text.strip():
            self.coordinator.schedule(
                Channel.GRAMMAR,
                self._begin_grammar_fetch,
                self.debounce_ms,
                self._on_grammar_result,
            )

    def update_config(self, config: SessionConfig | None = None, **changes) -> None:
        """Replace the config, or update individual fields (tone, structure, rhyme)."""
        if config is None:
            config = SessionConfig.model_validate({**self._state.config.model_dump(), **changes})
        self.coordinator.cancel(Channel.GRAMMAR)
        self.dispatch(ConfigChanged(config))

    def set_mode(self, mode: SuggestionMode) -> None:
        if mode is self.mode:
            return
        self.mode = mode
        self.coordinator.cancel(Channel.GRAMMAR)
        # Switching modes discards whatever the previous mode produced.
        self.dispatch(DocumentReset(text=self._state.document_text, config=self._state.config))

    def new_document(self, text: str = "", config: SessionConfig | None = None) -> None:
        for channel in Channel:
            self.coordinator.cancel(channel)
        self.dispatch(DocumentReset(text=text, config=config))

    def generate(self) -> bool:
        """Start a grammar fetch. Returns False when the current phase does not allow one."""
        request = self._begin_grammar_fetch()
        if request is None:
            return False
        self.coordinator.submit(Channel.GRAMMAR, request, self._on_grammar_result)
        return True

    def accept(self, suggestion: Suggestion | str) -> None:
        original_text, kind = self._resolve(suggestion)
        self.dispatch(SuggestionAccepted(original_text, kind))

    def dismiss(self, suggestion: Suggestion | str) -> None:
        original_text, kind = self._resolve(suggestion)
        self.dispatch(SuggestionDismissed(original_text, kind))

    def resuggest(self, suggestion: Suggestion | str) -> None:
        original_text, kind = self._resolve(suggestion)
        current = self._state.track_for(kind).get(original_text)
        state = self.dispatch(ResuggestRequested(original_text, kind))
        request = OracleRequest.from_config(
            original_text,
            state.config,
            SuggestionScope.for_kind(kind),
            excluded_phrases=state.exclusions.request_phrases(original_text, current.corrected_text),
        )

        def on_result(epoch: int, result: OracleResult) -> None:
            self.dispatch(ResuggestReceived(epoch, original_text, kind, result))

        self.coordinator.submit(Channel.RESUGGEST, request, on_result)

    def toggle_excluded_word(self, original_text: str, phrase: str) -> None:
        self.dispatch(ExcludedWordToggled(original_text, phrase))

    async def wait_idle(self) -> None:
        """Wait for every in-flight oracle call, including follow-up tone fetches."""
        await self.coordinator.drain()

    # --- Internals ---

    def _resolve(self, suggestion: Suggestion | str) -> tuple[str, SuggestionKind]:
        if isinstance(suggestion, Suggestion):
            return suggestion.original_text, suggestion.kind
        for kind in SuggestionKind:
            if self._state.track_for(kind).get(suggestion) is not None:
                return suggestion, kind
        raise UnknownSuggestionError(suggestion)

    def _begin_grammar_fetch(self) -> OracleRequest | None:
        previous = self._state.phase
        state = self.dispatch(GenerateRequested())
        if state.phase is not ReviewPhase.FETCHING_GRAMMAR or previous is ReviewPhase.FETCHING_GRAMMAR:
            return None
        return OracleRequest.from_config(state.document_text, state.config, SuggestionScope.GRAMMAR)

    def _after_transition(self, previous: SessionState, state: SessionState) -> None:
        if state.phase is ReviewPhase.FETCHING_TONE and previous.phase is not ReviewPhase.FETCHING_TONE:
            request = OracleRequest.from_config(state.document_text, state.config, SuggestionScope.TONE)
            self.coordinator.submit(Channel.TONE, request, self._on_tone_result)

    def _on_grammar_result(self, epoch: int, result: OracleResult) -> None:
        self.dispatch(GrammarFetched(epoch, result))

    def _on_tone_result(self, epoch: int, result: OracleResult) -> None:
        self.dispatch(ToneFetched(epoch, result))
