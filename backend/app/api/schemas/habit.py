"""Schemas for habit endpoints."""
from __future__ import annotations

import datetime as dt
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.api.schemas.task import clean_title


class HabitCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    frequency: Literal["daily", "weekly"] = "daily"
    target: int = Field(default=1, ge=1)
    category: Optional[str] = Field(default=None, max_length=50)

    @field_validator("title")
    @classmethod
    def trim_title(cls, value: str) -> str:
        return clean_title(value)


class HabitSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str]
    frequency: str
    target: int
    category: Optional[str]
    streak: int
    total_completions: int
    last_completed_at: Optional[dt.datetime]
    created_at: dt.datetime


class HabitToggleRequest(BaseModel):
    date: Optional[dt.date] = None


class HabitToggleResponse(BaseModel):
    habit: HabitSummary
    completed: bool
    date: dt.date
    xp_awarded: int
    request_id: str


class HabitCreateResponse(HabitSummary):
    request_id: str
