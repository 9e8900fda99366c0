"""Oracle adapter: turns an OracleRequest into LLM prompts and normalizes the reply."""

from __future__ import annotations

import logging

import anthropic
from pydantic import ValidationError

from verse_coach.clients.llm_client import DEFAULT_MODEL, LLMClient
from verse_coach.models.oracle import OracleErrorKind, OracleRequest, OracleResult
from verse_coach.models.suggestion import StructureKind, Suggestion, SuggestionScope

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
Você é um revisor literário especializado em poesia escrita em português do Brasil.
Você analisa o texto do autor e devolve sugestões pontuais de correção ou melhoria,
seguindo as normas da ABNT e a norma culta sem degradar a intenção poética.

Regras gerais:
1. "originalText" deve ser um trecho copiado EXATAMENTE do texto recebido (mesma grafia,
   pontuação e espaços), curto o bastante para identificar só o problema.
2. "correctedText" substitui apenas esse trecho.
3. Nunca repita o mesmo "originalText" em duas sugestões.
4. "explanation" é uma frase curta e clara em português.
5. "type" é "grammar" para erros de gramática, ortografia, pontuação ou estrutura,
   e "tone" para melhorias de estilo, vocabulário e tom.
6. Se não houver nada a sugerir, devolva uma lista vazia.

Responda somente com JSON no formato:
{"suggestions": [{"originalText": "...", "correctedText": "...", "explanation": "...", "type": "grammar|tone"}]}"""

SCOPE_INSTRUCTIONS: dict[SuggestionScope, str] = {
    SuggestionScope.GRAMMAR: (
        "Aponte SOMENTE problemas de gramática, ortografia, pontuação e estrutura "
        '(type = "grammar"). Analise o texto inteiro, incluindo problemas que atravessam versos.'
    ),
    SuggestionScope.TONE: (
        "O texto já foi revisado gramaticalmente. Aponte SOMENTE melhorias de estilo e tom "
        '(type = "tone") que aproximem o poema do tom desejado.'
    ),
    SuggestionScope.ALL: (
        'Aponte problemas de gramática (type = "grammar") e melhorias de tom (type = "tone").'
    ),
}

STRUCTURE_RULES: dict[StructureKind, str] = {
    StructureKind.LOOSE: (
        "Estrutura: poema. Versos livres são aceitos; pontuação e quebras de verso podem "
        "seguir escolhas expressivas do autor."
    ),
    StructureKind.STRICT: (
        "Estrutura: poesia. Respeite métrica, divisão em estrofes e pontuação convencional; "
        "aponte versos que quebrem o padrão estabelecido."
    ),
}


def build_prompt(request: OracleRequest) -> str:
    """Render the user prompt for a request."""
    rhyme = (
        "O texto deve rimar: sinalize versos que quebrem o esquema de rimas."
        if request.rhyme
        else "A rima é opcional: não sugira mudanças apenas para rimar."
    )
    sections = [
        SCOPE_INSTRUCTIONS[request.scope],
        f"Tom desejado: {request.tone}.",
        STRUCTURE_RULES[request.structure],
        rhyme,
    ]
    if request.excluded_phrases:
        excluded = "\n".join(f"- {p}" for p in request.excluded_phrases)
        sections.append(
            "NÃO use nenhuma das palavras ou frases abaixo na sua sugestão; "
            f"o autor já as rejeitou:\n{excluded}"
        )
    sections.append(f"Texto:\n{request.text}")
    return "\n\n".join(sections)


class OracleClient:
    """Requests suggestions from the LLM and never raises on upstream failure."""

    def __init__(
        self,
        llm: LLMClient,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        max_tokens: int = 4096,
    ):
        self.llm = llm
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(self, request: OracleRequest) -> OracleResult:
        if not request.text.strip():
            return OracleResult()

        try:
            data = await self.llm.generate_json(
                prompt=build_prompt(request),
                system=SYSTEM_PROMPT,
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except ValueError as exc:
            logger.warning("Oracle returned unparseable output: %s", exc)
            return OracleResult.failure(OracleErrorKind.MALFORMED, str(exc))
        except anthropic.APIConnectionError as exc:
            return OracleResult.failure(OracleErrorKind.NETWORK, str(exc))
        except anthropic.APIStatusError as exc:
            return OracleResult.failure(_classify_status(exc.status_code), str(exc))

        suggestions = self._parse_suggestions(data, request.scope)
        if suggestions is None:
            logger.warning("Oracle response had an unexpected shape: %.200r", data)
            return OracleResult.failure(OracleErrorKind.MALFORMED, "unexpected response shape")
        logger.info("Oracle returned %d %s suggestion(s)", len(suggestions), request.scope.value)
        return OracleResult(suggestions=suggestions)

    @staticmethod
    def _parse_suggestions(data, scope: SuggestionScope) -> list[Suggestion] | None:
        """Parse the reply into suggestions, or None when its shape is wrong."""
        if isinstance(data, dict):
            data = data.get("suggestions")
        if not isinstance(data, list):
            return None

        result = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                suggestion = Suggestion.model_validate(item)
            except ValidationError:
                logger.debug("Skipping invalid suggestion: %r", item)
                continue
            if scope is not SuggestionScope.ALL and suggestion.kind.value != scope.value:
                continue
            result.append(suggestion)
        return result


def _classify_status(status_code: int) -> OracleErrorKind:
    if status_code == 429 or status_code >= 500:
        return OracleErrorKind.UNAVAILABLE
    return OracleErrorKind.NETWORK
