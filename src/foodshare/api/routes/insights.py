"""Insight generation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...persistence import DonationStore, get_store
from ...schemas.insights import GenerateInsightsRequest, GenerateInsightsResponse, InsightModel
from ...services.insights import generate_insights, list_insights

router = APIRouter(prefix="/insights", tags=["insights"])


@router.post("/generate", response_model=GenerateInsightsResponse)
def generate(
    request: GenerateInsightsRequest | None = None,
    store: DonationStore = Depends(get_store),
) -> GenerateInsightsResponse:
    request = request or GenerateInsightsRequest()
    insights = generate_insights(
        store=store,
        window_days=request.window_days,
        sample_limit=request.sample_limit,
    )
    return GenerateInsightsResponse(
        success=True,
        message=f"Generated {len(insights)} insights",
        insights=[InsightModel.model_validate(insight) for insight in insights],
    )


@router.get("", response_model=list[InsightModel])
def get_insights(
    limit: int | None = Query(default=None, ge=1, le=100, description="Maximum number of insights to return"),
    store: DonationStore = Depends(get_store),
) -> list[InsightModel]:
    return [InsightModel.model_validate(insight) for insight in list_insights(store=store, limit=limit)]
