"""Schemas for the activity log."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ActivityLogItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action_type: str
    action_payload: Optional[Dict[str, Any]]
    reason: Optional[str]
    created_at: datetime


class ActivityLogResponse(BaseModel):
    items: List[ActivityLogItem]
    request_id: str
