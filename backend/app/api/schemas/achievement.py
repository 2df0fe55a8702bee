"""Schemas for badges."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class AchievementItem(BaseModel):
    achievement_id: str
    title: str
    description: str
    icon: str
    unlocked: bool
    unlocked_at: Optional[datetime] = None


class AchievementListResponse(BaseModel):
    achievements: List[AchievementItem]
    unlocked_count: int
    request_id: str
