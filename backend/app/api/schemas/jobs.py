"""Schemas for job operations endpoints."""
from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class JobRunRequest(BaseModel):
    job: Literal["quest_refresh", "quest_generation"]
    user_id: Optional[UUID] = None


class JobRunResponse(BaseModel):
    job: str
    users_processed: int
    rows_written: int
    request_id: str
