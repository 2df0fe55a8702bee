"""Schemas for the player profile."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    user_id: UUID
    display_name: Optional[str]
    language: str
    experience_points: int
    level: int
    xp_needed: int
    xp_progress: float
    credits: int
    ai_credits: int
    total_quests_completed: int
    avatar_type: str
    avatar_customization: Dict[str, str]
    unlocked_items: List[str]
    request_id: str


class ProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=100)
    language: Optional[Literal["fr", "en", "es", "de"]] = None


class AvatarUpdateRequest(BaseModel):
    helmet: Optional[str] = Field(default=None, max_length=50)
    armor: Optional[str] = Field(default=None, max_length=50)
    glow_color: Optional[str] = Field(default=None, max_length=20)
