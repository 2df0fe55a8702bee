"""Schemas for task endpoints."""
from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def clean_title(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("title must not be blank")
    return cleaned


class TaskCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    priority: Literal["low", "medium", "high"] = "medium"
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def trim_title(cls, value: str) -> str:
        return clean_title(value)


class TaskSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str]
    priority: str
    due_date: Optional[date]
    completed: bool
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class TaskUpdateRequest(BaseModel):
    completed: bool


class TaskUpdateResponse(BaseModel):
    id: UUID
    completed: bool
    completed_at: Optional[datetime]
    xp_awarded: int = 0
    level: Optional[int] = None
    request_id: str


class TaskCreateResponse(TaskSummary):
    request_id: str
