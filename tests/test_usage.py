"""Tests for usage logging and cost estimation."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from verse_coach.usage.cost_calculator import calculate_cost, pricing_for
from verse_coach.usage.models import UsageLog
from verse_coach.usage.usage_store import UsageStore


class TestUsageLog:
    def test_create_minimal(self):
        log = UsageLog(command="review")
        assert log.session_id == "anonymous"
        assert log.success is True
        assert log.accepted == 0
        assert log.id

    def test_unknown_command_rejected(self):
        with pytest.raises(ValidationError):
            UsageLog(command="deploy")

    def test_unique_ids(self):
        assert UsageLog(command="check").id != UsageLog(command="check").id

    def test_error_fields(self):
        log = UsageLog(command="review", success=False, error_message="API timeout")
        assert log.success is False
        assert log.error_message == "API timeout"


@pytest.fixture
def store(tmp_path: Path) -> UsageStore:
    return UsageStore(db_path=tmp_path / "test_usage.db")


class TestUsageStore:
    def test_save_and_get(self, store: UsageStore):
        log = UsageLog(
            command="review",
            session_id="sess-1",
            document_chars=120,
            accepted=2,
            dismissed=1,
            resuggested=3,
            total_input_tokens=5000,
            total_output_tokens=800,
            oracle_calls=4,
            estimated_cost_usd=0.009,
        )
        store.save_log(log)
        logs = store.get_logs()
        assert len(logs) == 1
        assert logs[0].id == log.id
        assert logs[0].resuggested == 3
        assert logs[0].oracle_calls == 4
        assert logs[0].timestamp == log.timestamp

    def test_filter_by_session(self, store: UsageStore):
        store.save_log(UsageLog(command="review", session_id="a"))
        store.save_log(UsageLog(command="check", session_id="b"))
        assert [log.command for log in store.get_logs(session_id="b")] == ["check"]

    def test_newest_first_and_limit(self, store: UsageStore):
        now = datetime.now()
        for i in range(3):
            store.save_log(UsageLog(command="review", timestamp=now + timedelta(minutes=i), accepted=i))
        logs = store.get_logs(limit=2)
        assert [log.accepted for log in logs] == [2, 1]

    def test_summary(self, store: UsageStore):
        store.save_log(UsageLog(command="review", accepted=2, total_input_tokens=100, estimated_cost_usd=0.01))
        store.save_log(
            UsageLog(command="review", accepted=1, estimated_cost_usd=0.02, success=False, error_message="x")
        )
        summary = store.get_summary()
        assert summary["total_runs"] == 2
        assert summary["total_accepted"] == 3
        assert summary["total_input_tokens"] == 100
        assert summary["total_cost_usd"] == pytest.approx(0.03)
        assert summary["success_rate"] == pytest.approx(50.0)

    def test_summary_by_command(self, store: UsageStore):
        store.save_log(UsageLog(command="review", dismissed=2, resuggested=1))
        store.save_log(UsageLog(command="check", dismissed=5))
        summary = store.get_summary(command="review")
        assert summary["total_runs"] == 1
        assert summary["total_dismissed"] == 2
        assert summary["total_resuggested"] == 1

    def test_failed_run_roundtrip(self, store: UsageStore):
        store.save_log(UsageLog(command="review", success=False, error_message="API timeout"))
        log = store.get_logs()[0]
        assert log.success is False
        assert log.error_message == "API timeout"

    def test_empty_summary(self, store: UsageStore):
        summary = store.get_summary()
        assert summary["total_runs"] == 0
        assert summary["success_rate"] == 0.0


class TestCalculateCost:
    def test_haiku(self):
        model = "claude-haiku-4-5-20251001"
        assert calculate_cost([(model, 1_000_000, 1_000_000)]) == pytest.approx(6.0)

    def test_sums_calls(self):
        model = "claude-sonnet-4-5-20250929"
        cost = calculate_cost([(model, 1_000_000, 0), (model, 0, 1_000_000)])
        assert cost == pytest.approx(18.0)

    def test_unknown_model_is_free(self):
        assert calculate_cost([("some-other-model", 10_000, 10_000)]) == 0.0

    def test_empty(self):
        assert calculate_cost([]) == 0.0

    def test_alias_and_snapshot_share_price(self):
        assert pricing_for("claude-haiku-4-5") == pricing_for("claude-haiku-4-5-20251001")
        assert pricing_for("gpt-4o") is None

    def test_default_model_is_priced(self):
        from verse_coach.clients.llm_client import DEFAULT_MODEL

        assert pricing_for(DEFAULT_MODEL) is not None
