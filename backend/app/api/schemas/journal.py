"""Schemas for journal endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class JournalCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1, max_length=20000)
    mood: Optional[str] = Field(default=None, max_length=32)
    tags: List[str] = Field(default_factory=list)


class JournalEntrySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    content: str
    mood: Optional[str]
    tags: List[str]
    created_at: datetime


class MoodSummaryResponse(BaseModel):
    days: int
    total: int
    counts: Dict[str, int]
    dominant_mood: Optional[str]
    request_id: str


class JournalCreateResponse(JournalEntrySummary):
    xp_awarded: int = 0
    request_id: str
