"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from verse_coach.clients.llm_client import LLMClient
from verse_coach.clients.oracle_client import OracleClient
from verse_coach.config import AppConfig, load_config
from verse_coach.engine.locator import CursorLocator
from verse_coach.engine.session import SuggestionSession
from verse_coach.engine.state import Channel, Notice, ReviewPhase
from verse_coach.models.suggestion import SessionConfig, StructureKind, Suggestion
from verse_coach.storage.document_store import DocumentStore
from verse_coach.usage.cost_calculator import calculate_cost
from verse_coach.usage.models import UsageLog
from verse_coach.usage.usage_store import UsageStore

app = typer.Typer(
    name="verse-coach",
    help="Assistente de revisão gramatical e de tom para poesia",
    no_args_is_help=True,
)
docs_app = typer.Typer(help="Documentos salvos", no_args_is_help=True)
app.add_typer(docs_app, name="docs")
console = Console()

CHANNEL_LABELS = {
    Channel.GRAMMAR: "Analisando gramática...",
    Channel.TONE: "Buscando sugestões de tom...",
    Channel.RESUGGEST: "Buscando outra alternativa...",
}


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log detalhado")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _session_config(
    config: AppConfig,
    store: DocumentStore,
    tone: str | None,
    structure: StructureKind | None,
    rhyme: bool | None,
) -> SessionConfig:
    _, saved = store.load_draft()
    base = saved or config.suggestions.session_defaults()
    changes = {
        k: v for k, v in {"tone": tone, "structure": structure, "rhyme": rhyme}.items()
        if v is not None
    }
    return base.model_copy(update=changes)


def _build_session(config: AppConfig, llm: LLMClient, text: str, session_config: SessionConfig) -> SuggestionSession:
    oracle = OracleClient(
        llm,
        model=config.llm.model,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
    )
    return SuggestionSession(
        oracle,
        text=text,
        config=session_config,
        mode=config.suggestions.suggestion_mode,
        debounce_ms=config.suggestions.debounce_ms,
        on_notice=_print_notice,
    )


def _print_notice(notice: Notice) -> None:
    console.print(f"[yellow]{notice.title}:[/yellow] {notice.message}")


async def _settle(session: SuggestionSession) -> None:
    """Wait for the session's oracle calls behind a spinner."""
    if not session.coordinator.in_flight:
        return
    labels = [label for channel, label in CHANNEL_LABELS.items() if session.is_loading(channel)]
    with console.status(labels[0] if labels else "Aguardando a IA..."):
        await session.wait_idle()


def _render_document(document: str, active: Suggestion) -> Text:
    text = Text(document)
    for start, end, _ in CursorLocator.highlight_spans(document, [active]):
        text.stylize("bold red underline", start, end)
    return text


def _suggestion_panel(suggestion: Suggestion, title: str, excluded: list[str]) -> Panel:
    body = (
        f"[red strike]{suggestion.original_text}[/red strike]  →  "
        f"[green]{suggestion.corrected_text}[/green]\n\n"
        f"[dim]{suggestion.explanation}[/dim]"
    )
    if excluded:
        body += f"\n\n[dim]Excluídas: {', '.join(excluded)}[/dim]"
    return Panel(body, title=title)


def _prompt_excluded_words(session: SuggestionSession, suggestion: Suggestion) -> None:
    words = typer.prompt("Palavras para excluir/incluir (separadas por vírgula)", default="")
    for word in (w.strip() for w in words.split(",")):
        if word:
            session.toggle_excluded_word(suggestion.original_text, word)


async def _review_grammar(session: SuggestionSession, counts: dict[str, int]) -> bool:
    """Sequential grammar review. Returns False if the writer quit."""
    while session.phase is ReviewPhase.REVIEWING_GRAMMAR:
        suggestion = session.active_grammar_suggestion
        total = len(session.grammar_suggestions)
        console.print(Panel(_render_document(session.document_text, suggestion), title="Texto"))
        console.print(_suggestion_panel(
            suggestion,
            f"Correção {session.review_cursor + 1} de {total}",
            session.excluded_phrases(suggestion.original_text),
        ))
        action = typer.prompt("[a]ceitar, [d]ispensar, [r]esugerir, [x] excluir palavras, [q] sair", default="a")
        action = action.strip().lower()[:1]
        if action == "q":
            return False
        if action == "a":
            session.accept(suggestion)
            counts["accepted"] += 1
        elif action == "d":
            session.dismiss(suggestion)
            counts["dismissed"] += 1
        elif action == "r":
            session.resuggest(suggestion)
            counts["resuggested"] += 1
        elif action == "x":
            _prompt_excluded_words(session, suggestion)
        await _settle(session)
    return True


async def _review_tone(session: SuggestionSession, counts: dict[str, int]) -> None:
    while session.phase is ReviewPhase.REVIEWING_TONE and session.tone_suggestions:
        suggestions = session.tone_suggestions
        table = Table(title="Sugestões de tom", show_lines=True)
        table.add_column("#", justify="right")
        table.add_column("Original")
        table.add_column("Sugestão")
        table.add_column("Motivo", style="dim")
        for i, s in enumerate(suggestions, start=1):
            table.add_row(str(i), s.original_text, s.corrected_text, s.explanation)
        console.print(table)

        choice = typer.prompt("Número da sugestão (0 para terminar)", type=int, default=0)
        if choice <= 0 or choice > len(suggestions):
            return
        suggestion = suggestions[choice - 1]
        console.print(_suggestion_panel(
            suggestion, f"Sugestão {choice}", session.excluded_phrases(suggestion.original_text)
        ))
        action = typer.prompt("[a]ceitar, [d]ispensar, [r]esugerir, [x] excluir palavras", default="a")
        action = action.strip().lower()[:1]
        if action == "a":
            session.accept(suggestion)
            counts["accepted"] += 1
        elif action == "d":
            session.dismiss(suggestion)
            counts["dismissed"] += 1
        elif action == "r":
            session.resuggest(suggestion)
            counts["resuggested"] += 1
        elif action == "x":
            _prompt_excluded_words(session, suggestion)
        await _settle(session)


async def _run_review(session: SuggestionSession, counts: dict[str, int]) -> None:
    if not session.generate():
        console.print("[yellow]Texto vazio: nada para revisar.[/yellow]")
        return
    await _settle(session)
    if not await _review_grammar(session, counts):
        return
    await _settle(session)
    if session.phase is ReviewPhase.REVIEWING_TONE and not session.tone_suggestions:
        console.print("[green]Nenhuma sugestão de tom. O poema está pronto![/green]")
    await _review_tone(session, counts)


def _log_usage(config: AppConfig, llm: LLMClient, log: UsageLog) -> None:
    summary = llm.get_token_summary()
    log.total_input_tokens = summary["input"]
    log.total_output_tokens = summary["output"]
    log.oracle_calls = len(summary["calls"])
    log.estimated_cost_usd = calculate_cost(summary["calls"])
    UsageStore(config.storage.resolved_usage_db_path).save_log(log)


@app.command()
def review(
    file: Path = typer.Argument(help="Arquivo de texto com o poema"),
    tone: str = typer.Option(None, "--tone", "-t", help="Tom desejado (ex: Melancólico)"),
    structure: StructureKind = typer.Option(None, "--structure", "-s", help="poema ou poesia"),
    rhyme: bool = typer.Option(None, "--rhyme/--no-rhyme", help="Exigir rima"),
    save: bool = typer.Option(True, "--save/--no-save", help="Gravar o texto revisado no arquivo"),
) -> None:
    """Revisa o poema: correções gramaticais uma a uma, depois sugestões de tom."""
    if not file.exists():
        console.print(f"[red]Arquivo não encontrado: {file}[/red]")
        raise typer.Exit(1)

    config = load_config()
    store = DocumentStore(config.storage.resolved_db_path)
    text = file.read_text(encoding="utf-8")
    session_config = _session_config(config, store, tone, structure, rhyme)
    llm = LLMClient(timeout=config.llm.timeout, max_attempts=config.llm.max_attempts)
    session = _build_session(config, llm, text, session_config)

    counts = {"accepted": 0, "dismissed": 0, "resuggested": 0}
    log = UsageLog(command="review", document_chars=len(text))
    start = time.monotonic()
    try:
        asyncio.run(_run_review(session, counts))
    except Exception as exc:
        log.success = False
        log.error_message = str(exc)
        raise
    finally:
        log.elapsed_seconds = time.monotonic() - start
        log.accepted = counts["accepted"]
        log.dismissed = counts["dismissed"]
        log.resuggested = counts["resuggested"]
        _log_usage(config, llm, log)

    store.save_draft(session.document_text, session.config)
    if save and session.document_text != text:
        file.write_text(session.document_text, encoding="utf-8")
        console.print(f"[green]Texto revisado salvo em {file}[/green]")
    console.print(
        f"[dim]Aceitas: {counts['accepted']} | Dispensadas: {counts['dismissed']} | "
        f"Ressugeridas: {counts['resuggested']}[/dim]"
    )


@app.command()
def check(
    file: Path = typer.Argument(help="Arquivo de texto com o poema"),
    tone: str = typer.Option(None, "--tone", "-t", help="Tom desejado"),
    structure: StructureKind = typer.Option(None, "--structure", "-s", help="poema ou poesia"),
    rhyme: bool = typer.Option(None, "--rhyme/--no-rhyme", help="Exigir rima"),
) -> None:
    """Lista as correções gramaticais (ou, se não houver, as sugestões de tom)."""
    if not file.exists():
        console.print(f"[red]Arquivo não encontrado: {file}[/red]")
        raise typer.Exit(1)

    config = load_config()
    store = DocumentStore(config.storage.resolved_db_path)
    text = file.read_text(encoding="utf-8")
    llm = LLMClient(timeout=config.llm.timeout, max_attempts=config.llm.max_attempts)
    session = _build_session(config, llm, text, _session_config(config, store, tone, structure, rhyme))

    async def _run() -> None:
        if session.generate():
            await _settle(session)

    start = time.monotonic()
    asyncio.run(_run())
    _log_usage(config, llm, UsageLog(
        command="check", document_chars=len(text), elapsed_seconds=time.monotonic() - start,
    ))

    suggestions = session.grammar_suggestions or session.tone_suggestions
    if not suggestions:
        console.print("[green]Nenhuma sugestão.[/green]")
        return
    title = "Correções gramaticais" if session.grammar_suggestions else "Sugestões de tom"
    table = Table(title=title, show_lines=True)
    table.add_column("Original")
    table.add_column("Sugestão")
    table.add_column("Motivo", style="dim")
    for s in suggestions:
        table.add_row(s.original_text, s.corrected_text, s.explanation)
    console.print(table)


@app.command()
def draft() -> None:
    """Mostra o rascunho e as configurações lembradas."""
    config = load_config()
    text, session_config = DocumentStore(config.storage.resolved_db_path).load_draft()
    session_config = session_config or config.suggestions.session_defaults()
    console.print(Panel(
        f"Tom: {session_config.tone} | Estrutura: {session_config.structure.value} | "
        f"Rima: {'sim' if session_config.rhyme else 'não'}",
        title="Configuração",
    ))
    console.print(Panel(text or "[dim](vazio)[/dim]", title="Rascunho"))


@app.command()
def usage() -> None:
    """Mostra o uso acumulado da IA."""
    config = load_config()
    summary = UsageStore(config.storage.resolved_usage_db_path).get_summary()
    console.print(Panel(
        f"Execuções: {summary['total_runs']} (sucesso {summary['success_rate']:.0f}%)\n"
        f"Sugestões aceitas: {summary['total_accepted']}\n"
        f"Tokens: {summary['total_input_tokens']} entrada / {summary['total_output_tokens']} saída\n"
        f"Custo estimado: ${summary['total_cost_usd']:.4f}",
        title="Uso",
    ))


@docs_app.command("list")
def docs_list() -> None:
    """Lista os documentos salvos."""
    config = load_config()
    docs = DocumentStore(config.storage.resolved_db_path).list_documents()
    if not docs:
        console.print("[yellow]Nenhum documento salvo.[/yellow]")
        return
    table = Table()
    table.add_column("ID", style="dim")
    table.add_column("Título")
    table.add_column("Atualizado")
    for doc in docs:
        table.add_row(doc.id, doc.title, doc.updated_at.strftime("%Y-%m-%d %H:%M"))
    console.print(table)


@docs_app.command("save")
def docs_save(
    file: Path = typer.Argument(help="Arquivo de texto"),
    title: str = typer.Option(None, "--title", help="Título (padrão: nome do arquivo)"),
    doc_id: str = typer.Option(None, "--id", help="Sobrescreve o documento com este ID"),
) -> None:
    """Salva um arquivo como documento."""
    if not file.exists():
        console.print(f"[red]Arquivo não encontrado: {file}[/red]")
        raise typer.Exit(1)
    config = load_config()
    doc = DocumentStore(config.storage.resolved_db_path).save_document(
        title or file.stem, file.read_text(encoding="utf-8"), doc_id=doc_id
    )
    console.print(f"[green]Documento salvo: {doc.id}[/green]")


@docs_app.command("show")
def docs_show(doc_id: str = typer.Argument(help="ID do documento")) -> None:
    """Mostra um documento salvo."""
    config = load_config()
    doc = DocumentStore(config.storage.resolved_db_path).get_document(doc_id)
    if doc is None:
        console.print(f"[red]Documento não encontrado: {doc_id}[/red]")
        raise typer.Exit(1)
    console.print(Panel(doc.content, title=doc.title))


@docs_app.command("delete")
def docs_delete(doc_id: str = typer.Argument(help="ID do documento")) -> None:
    """Remove um documento salvo."""
    config = load_config()
    if not DocumentStore(config.storage.resolved_db_path).delete_document(doc_id):
        console.print(f"[red]Documento não encontrado: {doc_id}[/red]")
        raise typer.Exit(1)
    console.print("[green]Documento removido.[/green]")


if __name__ == "__main__":
    app()
