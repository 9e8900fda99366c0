"""Usage record written after each CLI run."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class UsageLog(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str = "anonymous"
    timestamp: datetime = Field(default_factory=datetime.now)
    command: Literal["review", "check"]
    document_chars: int = 0

    # Review outcome counts
    accepted: int = 0
    dismissed: int = 0
    resuggested: int = 0

    elapsed_seconds: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    oracle_calls: int = 0
    estimated_cost_usd: float = 0.0
    success: bool = True
    error_message: str | None = None
