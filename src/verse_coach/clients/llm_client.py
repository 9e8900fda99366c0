"""Async Claude transport used by the suggestion oracle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple

import anthropic
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from verse_coach.utils.json_parser import extract_json

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"

# Only transport failures are retried. Rate limits and overload (429/5xx)
# surface at once so the writer decides when to try again.
RETRYABLE_ERRORS = (anthropic.APIConnectionError,)  # includes APITimeoutError


class CallRecord(NamedTuple):
    model: str
    input_tokens: int
    output_tokens: int


@dataclass
class LLMResponse:
    text: str
    input_tokens: int
    output_tokens: int
    stop_reason: str | None = None

    @property
    def truncated(self) -> bool:
        return self.stop_reason == "max_tokens"


class LLMClient:
    """Single-turn Claude calls with backoff on connection failures.

    Every completed call is appended to a token log that the CLI drains
    into a usage record once a review finishes.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        max_attempts: int = 3,
    ):
        kwargs: dict = {}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = anthropic.AsyncAnthropic(**kwargs)
        self.max_attempts = max_attempts
        self._token_log: list[CallRecord] = []

    async def _call_api(self, **request) -> anthropic.types.Message:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=1, max=10),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await self.client.messages.create(**request)

    async def generate(
        self,
        prompt: str,
        system: str = "",
        model: str = DEFAULT_MODEL,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> LLMResponse:
        request: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        logger.debug("LLM call: model=%s, prompt=%d chars", model, len(prompt))
        try:
            message = await self._call_api(**request)
        except Exception:
            logger.error("LLM call failed", exc_info=True)
            raise

        record = CallRecord(model, message.usage.input_tokens, message.usage.output_tokens)
        self._token_log.append(record)
        logger.debug("LLM response: %d input, %d output tokens", record.input_tokens, record.output_tokens)
        return LLMResponse(
            text=message.content[0].text,
            input_tokens=record.input_tokens,
            output_tokens=record.output_tokens,
            stop_reason=getattr(message, "stop_reason", None),
        )

    async def generate_json(
        self,
        prompt: str,
        system: str = "",
        model: str = DEFAULT_MODEL,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> dict | list:
        """Like :meth:`generate`, but parse the reply as JSON.

        Raises ValueError when no JSON can be recovered from the text.
        """
        response = await self.generate(
            prompt=prompt,
            system=system,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if response.truncated:
            logger.warning("LLM reply hit max_tokens=%d; JSON may be incomplete", max_tokens)
        return extract_json(response.text)

    def get_token_summary(self) -> dict:
        """Totals since the last call, plus the per-call records. Clears the log."""
        calls, self._token_log = self._token_log, []
        return {
            "input": sum(c.input_tokens for c in calls),
            "output": sum(c.output_tokens for c in calls),
            "calls": calls,
        }
