"""Inference-backed endpoint schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeImageRequest(BaseModel):
    image_base64: str = Field(..., min_length=1)
    mime_type: str = "image/jpeg"


class ImageAnalysisModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quality_score: float
    category: str
    description: str
    suggestions: List[str]
    expiry_prediction: Optional[datetime] = None
    fallback: bool = False


class AnalyzeImageResponse(BaseModel):
    analysis: ImageAnalysisModel


class AnalyzePatternsRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class BehaviorAnalysisModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    summary: str
    inferred_preferences: List[str]
    suggested_actions: List[str]
    skipped: bool = False


class AnalyzePatternsResponse(BaseModel):
    success: bool
    skipped: bool
    analysis: BehaviorAnalysisModel
    updated_preferences: List[str]
    preferred_food_types: List[str]


class ChatbotRequest(BaseModel):
    message: str = Field(..., min_length=1)
    context: Optional[str] = None


class ChatbotResponse(BaseModel):
    response: str
