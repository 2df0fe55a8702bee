"""Schemas for the power-up shop."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PowerUpCatalogItem(BaseModel):
    key: str
    name: str
    description: str
    cost: int
    reward_type: str
    reward_value: Optional[Union[int, str]]
    multiplier: float
    duration_minutes: Optional[int]
    rarity: str
    icon: str


class PowerUpCatalogResponse(BaseModel):
    items: List[PowerUpCatalogItem]
    request_id: str


class ActivePowerUpSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    powerup_type: str
    multiplier: float
    expires_at: datetime


class ActivePowerUpsResponse(BaseModel):
    active: List[ActivePowerUpSummary]
    xp_multiplier: float
    streak_protected: bool
    request_id: str


class PowerUpActivateRequest(BaseModel):
    powerup_type: str


class ChestRewardPayload(BaseModel):
    rarity: str
    xp: int
    credits: int
    ai_credits: int


class PowerUpActivateResponse(BaseModel):
    powerup_type: str
    reward_type: str
    credits_spent: int
    credits_balance: int
    ai_credits_balance: Optional[int]
    ai_credits_granted: int
    credits_granted: int
    xp_granted: int
    level: Optional[int]
    leveled_up: bool
    unlocked_item: Optional[str]
    multiplier: Optional[float]
    expires_at: Optional[datetime]
    chest: Optional[ChestRewardPayload]
    request_id: str
