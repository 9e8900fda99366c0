"""Cost estimate for Claude API usage."""

from __future__ import annotations

from collections.abc import Iterable

# USD per 1M tokens, keyed by model family. Dated snapshots and aliases
# ("claude-haiku-4-5", "claude-haiku-4-5-20251001") share a family price.
MODEL_PRICING: dict[str, dict[str, float]] = {
    "claude-haiku-4-5": {"input": 1.00, "output": 5.00},
    "claude-sonnet-4-5": {"input": 3.00, "output": 15.00},
}


def pricing_for(model_id: str) -> dict[str, float] | None:
    family = max((f for f in MODEL_PRICING if model_id.startswith(f)), key=len, default=None)
    return None if family is None else MODEL_PRICING[family]


def calculate_cost(calls: Iterable[tuple[str, int, int]]) -> float:
    """Total estimated USD cost of (model_id, input_tokens, output_tokens) calls.

    Calls to models missing from the pricing table count as free.
    """
    total = 0.0
    for model_id, input_tokens, output_tokens in calls:
        pricing = pricing_for(model_id)
        if pricing is None:
            continue
        total += (input_tokens * pricing["input"] + output_tokens * pricing["output"]) / 1_000_000
    return total
