"""Schemas for the AI assistant endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    user_id: Optional[UUID] = None
    context: Optional[Dict[str, Any]] = None


class ChatResponse(BaseModel):
    response: str
    suggestion: Optional[Dict[str, Any]] = None
    error: bool = False
    credits_remaining: Optional[int] = None
    request_id: str


class AnalysisRequest(BaseModel):
    language: Optional[Literal["fr", "en", "es", "de"]] = None


class AnalysisResponse(BaseModel):
    analysis: str
    stats: Dict[str, Any]
    error: bool = False
    credits_remaining: Optional[int] = None
    request_id: str


class InsightRequest(BaseModel):
    type: Literal[
        "daily_briefing",
        "smart_prioritization",
        "cross_insights",
        "goal_prediction",
        "habit_dna",
        "flow_prediction",
        "mood_analysis",
    ]


class InsightResponse(BaseModel):
    type: str
    result: Dict[str, Any]
    generated_at: datetime
    credits_remaining: Optional[int] = None
    request_id: str
