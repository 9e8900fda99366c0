"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from verse_coach.clients.llm_client import LLMClient, LLMResponse
from verse_coach.clients.oracle_client import OracleClient
from verse_coach.engine.scheduler import ManualScheduler
from verse_coach.engine.session import SuggestionSession
from verse_coach.models.oracle import OracleResult
from verse_coach.models.suggestion import SessionConfig


@pytest.fixture
def sample_poem() -> str:
    return (
        "Eu gosta de poesia.\n"
        "A noite cai triste sobre o mar,\n"
        "e as ondas vem sem parar."
    )


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(tone="Melancólico")


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.generate = AsyncMock(
        return_value=LLMResponse(text="{}", input_tokens=100, output_tokens=50)
    )
    client.generate_json = AsyncMock(return_value={"suggestions": []})
    return client


@pytest.fixture
def mock_oracle() -> OracleClient:
    """Oracle double answering with no suggestions unless a test says otherwise."""
    oracle = AsyncMock(spec=OracleClient)
    oracle.generate = AsyncMock(return_value=OracleResult())
    return oracle


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def make_session(mock_oracle, scheduler, session_config):
    """Build a session over the mock oracle and the manual scheduler."""

    def _make(text: str = "", **kwargs) -> SuggestionSession:
        kwargs.setdefault("config", session_config)
        kwargs.setdefault("scheduler", scheduler)
        return SuggestionSession(mock_oracle, text=text, **kwargs)

    return _make
