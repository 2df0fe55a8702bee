"""Schemas for goal endpoints."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.api.schemas.task import clean_title


class GoalCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: Optional[str] = Field(default=None, max_length=50)
    target_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def trim_title(cls, value: str) -> str:
        return clean_title(value)


class GoalSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str]
    category: Optional[str]
    target_date: Optional[date]
    progress: int
    completed: bool
    completed_at: Optional[datetime]
    created_at: datetime


class GoalProgressRequest(BaseModel):
    # Out-of-range values are clamped, not rejected.
    progress: int


class GoalProgressResponse(BaseModel):
    goal: GoalSummary
    xp_awarded: int = 0
    request_id: str


class GoalCreateResponse(GoalSummary):
    request_id: str
