"""Inference-backed endpoints: image analysis, preference refresh and chat."""

from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException, status

from ...errors import FoodShareError
from ...persistence import DonationStore, get_store
from ...schemas.ai import (
    AnalyzeImageRequest,
    AnalyzeImageResponse,
    AnalyzePatternsRequest,
    AnalyzePatternsResponse,
    BehaviorAnalysisModel,
    ChatbotRequest,
    ChatbotResponse,
    ImageAnalysisModel,
)
from ...services.ai import analyze_food_image, generate_chatbot_response, refresh_preferences
from ..errors import to_http_exception

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/analyze-image", response_model=AnalyzeImageResponse)
def analyze_image(request: AnalyzeImageRequest) -> AnalyzeImageResponse:
    payload = request.image_base64
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        image = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image data is required") from exc

    analysis = analyze_food_image(image, mime_type=request.mime_type)
    return AnalyzeImageResponse(analysis=ImageAnalysisModel.model_validate(analysis))


@router.post("/analyze-patterns", response_model=AnalyzePatternsResponse)
def analyze_patterns(request: AnalyzePatternsRequest, store: DonationStore = Depends(get_store)) -> AnalyzePatternsResponse:
    try:
        result = refresh_preferences(request.user_id, store=store)
    except FoodShareError as exc:
        raise to_http_exception(exc) from exc
    return AnalyzePatternsResponse(
        success=True,
        skipped=result.skipped,
        analysis=BehaviorAnalysisModel.model_validate(result.analysis),
        updated_preferences=result.updated_preferences,
        preferred_food_types=result.profile.preferred_food_types,
    )


@router.post("/chatbot", response_model=ChatbotResponse)
def chatbot(request: ChatbotRequest) -> ChatbotResponse:
    try:
        reply = generate_chatbot_response(request.message, request.context)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return ChatbotResponse(response=reply)
