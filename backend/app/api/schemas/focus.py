"""Schemas for focus session endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FocusStartRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    planned_duration: Optional[int] = Field(default=None, ge=1, le=24 * 60)


class FocusCompleteRequest(BaseModel):
    duration: Optional[int] = Field(default=None, ge=0, le=24 * 60)


class FocusSessionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: Optional[str]
    planned_duration: Optional[int]
    duration: int
    started_at: datetime
    completed_at: Optional[datetime]


class FocusCompleteResponse(BaseModel):
    session: FocusSessionSummary
    reward: str
    xp_awarded: int
    request_id: str


class FocusStartResponse(FocusSessionSummary):
    request_id: str
