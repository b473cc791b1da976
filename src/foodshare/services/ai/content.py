"""Food image quality analysis."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ...errors import InferenceUnavailable
from .client import InferenceClient, InferenceService
from .parsing import extract_json_object

logger = logging.getLogger(__name__)

IMAGE_ANALYSIS_PROMPT = """Analyze this food image and provide:
1. Quality score (0.0 to 1.0) - assess freshness and condition
2. Food category (e.g., "Rice Dish", "Bread", "Vegetables", "Meat", etc.)
3. Estimated expiry time in hours from now (if visible indicators suggest it)
4. Brief description of the food
5. Suggestions for storage or handling

IMPORTANT: Respond ONLY with a valid JSON object.
Format:
{
  "quality_score": 0.85,
  "category": "Rice Dish",
  "expiry_hours": 24,
  "description": "Fresh biryani with visible rice grains and meat pieces",
  "suggestions": ["Store in refrigerator", "Consume within 24 hours", "Reheat before serving"]
}"""

DEFAULT_QUALITY_SCORE = 0.7
DEFAULT_CATEGORY = "Food"
DEFAULT_DESCRIPTION = "Unable to analyze image"
DEFAULT_SUGGESTIONS = ("Store properly", "Check expiry date")


@dataclass(slots=True)
class ImageAnalysis:
    quality_score: float
    category: str
    description: str
    suggestions: list[str] = field(default_factory=list)
    expiry_prediction: Optional[datetime] = None
    fallback: bool = False


def default_analysis() -> ImageAnalysis:
    return ImageAnalysis(
        quality_score=DEFAULT_QUALITY_SCORE,
        category=DEFAULT_CATEGORY,
        description=DEFAULT_DESCRIPTION,
        suggestions=list(DEFAULT_SUGGESTIONS),
        fallback=True,
    )


class ImageAnalysisPayload(BaseModel):
    """Shape expected from the model; anything else is treated as unusable."""

    quality_score: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    category: Optional[str] = None
    expiry_hours: Optional[float] = None
    description: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)

    @field_validator("quality_score", mode="before")
    @classmethod
    def _reject_non_numeric(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("quality_score must be a number")
        return value

    @field_validator("expiry_hours", mode="before")
    @classmethod
    def _ignore_non_numeric_expiry(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if math.isnan(value) or math.isinf(value):
            return None
        return value

    @field_validator("category", "description", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()

    @field_validator("suggestions", mode="before")
    @classmethod
    def _keep_string_suggestions(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def parse_image_analysis(text: str | None) -> ImageAnalysisPayload | None:
    payload = extract_json_object(text)
    if payload is None:
        return None
    try:
        return ImageAnalysisPayload.model_validate(payload)
    except ValidationError as exc:
        logger.warning(f"Image analysis response failed validation: {exc.error_count()} error(s)")
        return None


def analyze_food_image(
    image: bytes,
    *,
    mime_type: str = "image/jpeg",
    client: InferenceService | None = None,
    now: datetime | None = None,
) -> ImageAnalysis:
    """Score and categorize a food photo; returns the default analysis on any failure."""

    now = now or datetime.now(timezone.utc)
    try:
        service = client or InferenceClient()
        text = service.generate(IMAGE_ANALYSIS_PROMPT, image=image, mime_type=mime_type, json_response=True)
    except InferenceUnavailable as exc:
        logger.warning(f"Image analysis unavailable, using defaults: {exc}")
        return default_analysis()

    parsed = parse_image_analysis(text)
    if parsed is None:
        logger.warning(f"Could not parse image analysis response: {text[:100]!r}")
        return default_analysis()

    expiry_prediction = None
    if parsed.expiry_hours is not None and parsed.expiry_hours > 0:
        try:
            expiry_prediction = now + timedelta(hours=parsed.expiry_hours)
        except OverflowError:
            logger.warning(f"Ignoring out-of-range expiry_hours={parsed.expiry_hours}")

    return ImageAnalysis(
        quality_score=parsed.quality_score,
        category=parsed.category or DEFAULT_CATEGORY,
        description=parsed.description or "Food item",
        suggestions=parsed.suggestions,
        expiry_prediction=expiry_prediction,
    )
