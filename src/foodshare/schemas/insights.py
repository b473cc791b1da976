"""Insight API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InsightModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    message: str
    insight_type: str
    created_at: datetime


class GenerateInsightsRequest(BaseModel):
    window_days: Optional[int] = Field(default=None, ge=1, le=365)
    sample_limit: Optional[int] = Field(default=None, ge=1, le=1000)


class GenerateInsightsResponse(BaseModel):
    success: bool
    message: str
    insights: List[InsightModel]
