"""Schemas for quest endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class QuestSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str]
    quest_type: str
    category: str
    target_value: int
    current_progress: int
    reward_xp: int
    reward_credits: int
    completed: bool
    completed_at: Optional[datetime]
    expires_at: Optional[datetime]
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("metadata_json", "metadata"),
    )
    created_at: datetime


class QuestListResponse(BaseModel):
    quests: List[QuestSummary]
    request_id: str


class QuestRefreshResponse(BaseModel):
    updated: int
    request_id: str


class QuestGenerateResponse(BaseModel):
    daily: int
    weekly: int
    achievement: int
    removed_daily: int
    request_id: str


class QuestClaimResponse(BaseModel):
    quest: QuestSummary
    xp_awarded: int
    credits_awarded: int
    credits_balance: int
    level: int
    leveled_up: bool
    badges_unlocked: List[str]
    request_id: str
