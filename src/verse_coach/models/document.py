"""Pydantic model for a named, persisted document."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class StoredDocument(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    content: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
