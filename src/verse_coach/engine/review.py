"""Review state machine: a pure reducer from (state, event) to the next state.

Phases run ``idle -> fetching_grammar -> reviewing_grammar -> fetching_tone
-> reviewing_tone -> idle``. Grammar strictly gates tone: the tone track is
only populated once the grammar track is empty. Any user edit or config
change clears both tracks, bumps the epoch and drops back to ``idle``;
oracle responses carrying an older epoch are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from verse_coach.engine.errors import SessionError, UnknownSuggestionError
from verse_coach.engine.exclusions import ExclusionRegistry
from verse_coach.engine.patcher import TextPatcher
from verse_coach.engine.state import (
    Channel,
    Notice,
    NoticeKind,
    ReviewPhase,
    SessionState,
    SuggestionTrack,
)
from verse_coach.models.oracle import OracleErrorKind, OracleResult
from verse_coach.models.suggestion import SessionConfig, SuggestionKind

logger = logging.getLogger(__name__)


# --- Events ---


@dataclass(frozen=True)
class DocumentEdited:
    text: str


@dataclass(frozen=True)
class ConfigChanged:
    config: SessionConfig


@dataclass(frozen=True)
class DocumentReset:
    text: str = ""
    config: SessionConfig | None = None


@dataclass(frozen=True)
class GenerateRequested:
    pass


@dataclass(frozen=True)
class GrammarFetched:
    epoch: int
    result: OracleResult


@dataclass(frozen=True)
class ToneFetched:
    epoch: int
    result: OracleResult


@dataclass(frozen=True)
class SuggestionAccepted:
    original_text: str
    kind: SuggestionKind


@dataclass(frozen=True)
class SuggestionDismissed:
    original_text: str
    kind: SuggestionKind


@dataclass(frozen=True)
class ResuggestRequested:
    original_text: str
    kind: SuggestionKind


@dataclass(frozen=True)
class ResuggestReceived:
    epoch: int
    original_text: str
    kind: SuggestionKind
    result: OracleResult


@dataclass(frozen=True)
class ExcludedWordToggled:
    original_text: str
    phrase: str


Event = (
    DocumentEdited
    | ConfigChanged
    | DocumentReset
    | GenerateRequested
    | GrammarFetched
    | ToneFetched
    | SuggestionAccepted
    | SuggestionDismissed
    | ResuggestRequested
    | ResuggestReceived
    | ExcludedWordToggled
)


# --- Notices ---

OVERLOADED_MESSAGE = (
    "O modelo de IA está sobrecarregado no momento. "
    "Por favor, aguarde um pouco e tente novamente."
)
GENERIC_ERROR_MESSAGE = "Por favor, tente novamente mais tarde."


def _oracle_error_notice(result: OracleResult) -> Notice:
    overloaded = result.error is not None and result.error.kind is OracleErrorKind.UNAVAILABLE
    return Notice(
        kind=NoticeKind.ORACLE_ERROR,
        title="Erro ao Gerar Sugestões",
        message=OVERLOADED_MESSAGE if overloaded else GENERIC_ERROR_MESSAGE,
    )


def _obsolete_notice(original_text: str) -> Notice:
    return Notice(
        kind=NoticeKind.OBSOLETE_SUGGESTION,
        title="Sugestão obsoleta",
        message=f'O trecho "{original_text}" não foi encontrado no texto atual.',
    )


NO_ALTERNATIVE_NOTICE = Notice(
    kind=NoticeKind.NO_ALTERNATIVE,
    title="Nenhuma nova sugestão",
    message=(
        "A IA não conseguiu encontrar uma alternativa. "
        "Tente remover algumas palavras excluídas."
    ),
)


# --- Helpers ---


def _start_loading(state: SessionState, channel: Channel) -> frozenset[Channel]:
    return state.loading | {channel}


def _stop_loading(state: SessionState, channel: Channel) -> frozenset[Channel]:
    return state.loading - {channel}


def _invalidate(state: SessionState, **changes) -> SessionState:
    """Clear every suggestion, bump the epoch and return to idle."""
    document = changes.get("document_text", state.document_text)
    return replace(
        state,
        grammar=SuggestionTrack(),
        tone=SuggestionTrack(),
        phase=ReviewPhase.IDLE,
        epoch=state.epoch + 1,
        loading=frozenset(),
        exclusions=state.exclusions.prune(document),
        **changes,
    )


def _live_keys(state: SessionState) -> list[str]:
    pending_grammar = state.grammar.items[state.grammar.spotlight or 0:]
    return [s.original_text for s in pending_grammar] + [s.original_text for s in state.tone]


def _phase_after_failed_fetch(state: SessionState) -> ReviewPhase:
    # An earlier tone list that is still held means review was underway.
    return ReviewPhase.REVIEWING_TONE if len(state.tone) else ReviewPhase.IDLE


def _enter_tone_fetch(state: SessionState) -> SessionState:
    return replace(
        state,
        grammar=SuggestionTrack(),
        phase=ReviewPhase.FETCHING_TONE,
        loading=_start_loading(state, Channel.TONE),
    )


def _advance_grammar(state: SessionState, next_index: int) -> SessionState:
    if next_index < len(state.grammar):
        return replace(state, grammar=state.grammar.with_spotlight(next_index))
    return _enter_tone_fetch(state)


def _under_review(state: SessionState, original_text: str, kind: SuggestionKind) -> bool:
    """Whether the user can still act on this suggestion.

    Grammar: only the spotlighted item. Tone: any pending item while tone
    review is open.
    """
    if kind is SuggestionKind.GRAMMAR:
        current = state.active_grammar_suggestion
        return current is not None and current.original_text == original_text
    return state.phase is ReviewPhase.REVIEWING_TONE and state.tone.get(original_text) is not None


def _require(state: SessionState, original_text: str, kind: SuggestionKind) -> None:
    if not _under_review(state, original_text, kind):
        raise UnknownSuggestionError(original_text)


# --- Handlers ---


def _on_document_edited(state: SessionState, event: DocumentEdited) -> SessionState:
    if event.text == state.document_text:
        return state
    return _invalidate(state, document_text=event.text)


def _on_config_changed(state: SessionState, event: ConfigChanged) -> SessionState:
    if event.config == state.config:
        return state
    return _invalidate(state, config=event.config)


def _on_document_reset(state: SessionState, event: DocumentReset) -> SessionState:
    return SessionState(
        document_text=event.text,
        config=event.config or state.config,
        epoch=state.epoch + 1,
        exclusions=ExclusionRegistry(),
    )


def _on_generate(state: SessionState, event: GenerateRequested) -> SessionState:
    if not state.document_text.strip():
        return state
    if state.phase not in (ReviewPhase.IDLE, ReviewPhase.REVIEWING_TONE):
        logger.debug("Generate ignored in phase %s", state.phase.value)
        return state
    return replace(
        state,
        phase=ReviewPhase.FETCHING_GRAMMAR,
        loading=_start_loading(state, Channel.GRAMMAR),
    )


def _is_stale(state: SessionState, epoch: int, expected: ReviewPhase) -> bool:
    if epoch != state.epoch:
        logger.debug("Discarding stale response (epoch %d, current %d)", epoch, state.epoch)
        return True
    if state.phase is not expected:
        logger.debug("Discarding response for %s while %s", expected.value, state.phase.value)
        return True
    return False


def _on_grammar_fetched(state: SessionState, event: GrammarFetched) -> SessionState:
    if _is_stale(state, event.epoch, ReviewPhase.FETCHING_GRAMMAR):
        return state
    state = replace(state, loading=_stop_loading(state, Channel.GRAMMAR))
    if not event.result.ok:
        return replace(state, phase=_phase_after_failed_fetch(state)).with_notice(
            _oracle_error_notice(event.result)
        )

    grammar = SuggestionTrack.from_suggestions(event.result.suggestions, kind=SuggestionKind.GRAMMAR)
    grammar = TextPatcher.revalidate(grammar, state.document_text)
    if not len(grammar):
        return _enter_tone_fetch(state)
    return replace(
        state,
        grammar=grammar.with_spotlight(0),
        tone=SuggestionTrack(),
        phase=ReviewPhase.REVIEWING_GRAMMAR,
    )


def _on_tone_fetched(state: SessionState, event: ToneFetched) -> SessionState:
    if _is_stale(state, event.epoch, ReviewPhase.FETCHING_TONE):
        return state
    state = replace(state, loading=_stop_loading(state, Channel.TONE))
    if not event.result.ok:
        return replace(state, phase=_phase_after_failed_fetch(state)).with_notice(
            _oracle_error_notice(event.result)
        )

    tone = SuggestionTrack.from_suggestions(event.result.suggestions, kind=SuggestionKind.TONE)
    tone = TextPatcher.revalidate(tone, state.document_text)
    return replace(state, tone=tone, phase=ReviewPhase.REVIEWING_TONE)


def _on_accepted(state: SessionState, event: SuggestionAccepted) -> SessionState:
    _require(state, event.original_text, event.kind)
    suggestion = state.track_for(event.kind).get(event.original_text)
    patch = TextPatcher.apply(state.document_text, suggestion.original_text, suggestion.corrected_text)

    if event.kind is SuggestionKind.GRAMMAR:
        index = state.grammar.spotlight
        if not patch.applied:
            # The next suggestion slides into the dropped one's slot.
            state = replace(state, grammar=state.grammar.remove(event.original_text))
            return _advance_grammar(state, index).with_notice(_obsolete_notice(event.original_text))
        state = replace(
            state,
            document_text=patch.document,
            grammar=TextPatcher.revalidate(state.grammar, patch.document, start=index + 1),
        )
        state = _advance_grammar(state, index + 1)
    else:
        tone = state.tone.remove(event.original_text)
        if not patch.applied:
            state = replace(state, tone=tone).with_notice(_obsolete_notice(event.original_text))
        else:
            state = replace(
                state,
                document_text=patch.document,
                tone=TextPatcher.revalidate(tone, patch.document),
            )
        if not len(state.tone):
            state = replace(state, phase=ReviewPhase.IDLE)

    if patch.applied:
        exclusions = state.exclusions.discard(event.original_text)
        state = replace(state, exclusions=exclusions.prune(state.document_text, _live_keys(state)))
    return state


def _on_dismissed(state: SessionState, event: SuggestionDismissed) -> SessionState:
    _require(state, event.original_text, event.kind)
    if event.kind is SuggestionKind.GRAMMAR:
        return _advance_grammar(state, state.grammar.spotlight + 1)
    tone = state.tone.remove(event.original_text)
    phase = ReviewPhase.REVIEWING_TONE if len(tone) else ReviewPhase.IDLE
    return replace(state, tone=tone, phase=phase)


def _on_resuggest_requested(state: SessionState, event: ResuggestRequested) -> SessionState:
    _require(state, event.original_text, event.kind)
    return replace(state, loading=_start_loading(state, Channel.RESUGGEST))


def _on_resuggest_received(state: SessionState, event: ResuggestReceived) -> SessionState:
    if event.epoch != state.epoch:
        logger.debug("Discarding stale resuggestion for %r", event.original_text)
        return state
    state = replace(state, loading=_stop_loading(state, Channel.RESUGGEST))
    if not _under_review(state, event.original_text, event.kind):
        # Accepted, dismissed or passed by the review cursor meanwhile.
        logger.debug("Resuggestion target %r is no longer under review", event.original_text)
        return state
    track = state.track_for(event.kind)
    previous = track.get(event.original_text)
    if not event.result.ok:
        return state.with_notice(_oracle_error_notice(event.result))
    if not event.result.suggestions:
        return state.with_notice(NO_ALTERNATIVE_NOTICE)

    alternative = event.result.suggestions[0].rekeyed(event.original_text, event.kind)
    exclusions = (
        state.exclusions
        .record(event.original_text, previous.corrected_text)
        .record(event.original_text, alternative.corrected_text)
    )
    state = state.with_track(event.kind, track.replace(event.original_text, alternative))
    return replace(state, exclusions=exclusions)


def _on_excluded_word_toggled(state: SessionState, event: ExcludedWordToggled) -> SessionState:
    return replace(state, exclusions=state.exclusions.toggle(event.original_text, event.phrase))


_HANDLERS: dict[type, Callable[[SessionState, object], SessionState]] = {
    DocumentEdited: _on_document_edited,
    ConfigChanged: _on_config_changed,
    DocumentReset: _on_document_reset,
    GenerateRequested: _on_generate,
    GrammarFetched: _on_grammar_fetched,
    ToneFetched: _on_tone_fetched,
    SuggestionAccepted: _on_accepted,
    SuggestionDismissed: _on_dismissed,
    ResuggestRequested: _on_resuggest_requested,
    ResuggestReceived: _on_resuggest_received,
    ExcludedWordToggled: _on_excluded_word_toggled,
}


def transition(state: SessionState, event: Event) -> SessionState:
    """Return the state that results from applying ``event`` to ``state``."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise SessionError(f"Unsupported event: {type(event).__name__}")
    return handler(state, event)
